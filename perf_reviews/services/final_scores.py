"""
Final Score & Delivery

Derives each employee's final score from their (possibly calibrated) manager
evaluation. Scores are recomputable until delivered; delivery locks them.
"""
from typing import List, Optional

from perf_reviews.core.exceptions import (
    FinalScoreLocked,
    FinalScoreNotFound,
    InvalidStateTransition,
    ManagerEvaluationNotFound,
)
from perf_reviews.models.final_score import FinalScore
from perf_reviews.models.manager_evaluation import ManagerEvaluation
from perf_reviews.repositories.reviews import ManagerEvaluationRepository
from perf_reviews.repositories.scores import FinalScoreRepository
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.scores import PillarScores
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.scoring import calculate


class FinalScoreService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.final_scores = FinalScoreRepository(db)
        self.evaluations = ManagerEvaluationRepository(db)

    def compute(self, cycle_id: str, employee_id: str, actor: Actor) -> FinalScore:
        self.policy.require(actor, Action.COMPUTE_FINAL_SCORE, AuthTarget(subject_id=employee_id))
        with self.unit_of_work():
            self.get_open_cycle(cycle_id)
            evaluation = self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
            if not evaluation:
                raise ManagerEvaluationNotFound(details={"cycle_id": cycle_id, "employee_id": employee_id})
            if not evaluation.is_submitted:
                raise InvalidStateTransition(
                    "Manager evaluation has not been submitted",
                    details={"status": evaluation.status.value},
                )
            final = self.final_scores.find_by_employee_and_cycle(employee_id, cycle_id, for_update=True)
            if final and final.is_locked:
                raise FinalScoreLocked(details={"final_score_id": final.id})
            final = self._upsert(final, evaluation)
        self._logger.info(
            f"Final score for {employee_id} in cycle {cycle_id}: "
            f"{final.weighted_score} ({final.percentage_score}%, {final.bonus_tier.value})"
        )
        return final

    def compute_cycle(self, cycle_id: str, actor: Actor) -> List[FinalScore]:
        """Compute every submitted evaluation in the cycle, skipping locked scores."""
        self.policy.require(actor, Action.COMPUTE_FINAL_SCORE)
        computed = []
        skipped = 0
        with self.unit_of_work():
            self.get_open_cycle(cycle_id)
            for evaluation in self.evaluations.find_by_cycle(cycle_id):
                if not evaluation.is_submitted:
                    skipped += 1
                    continue
                final = self.final_scores.find_by_employee_and_cycle(evaluation.employee_id, cycle_id, for_update=True)
                if final and final.is_locked:
                    skipped += 1
                    continue
                computed.append(self._upsert(final, evaluation))
        self._logger.info(f"Computed {len(computed)} final scores in cycle {cycle_id} ({skipped} skipped)")
        return computed

    def refresh_for_evaluation(self, evaluation: ManagerEvaluation) -> Optional[FinalScore]:
        """
        Recompute an existing unlocked final score after its evaluation changed.

        Runs inside the caller's unit of work. Delivered scores are left alone.
        """
        final = self.final_scores.find_by_employee_and_cycle(evaluation.employee_id, evaluation.cycle_id)
        if final is None or final.is_locked:
            return None
        return self._upsert(final, evaluation)

    def deliver(self, final_score_id: str, feedback_notes: Optional[str], actor: Actor) -> FinalScore:
        with self.unit_of_work():
            final = self._get(final_score_id, for_update=True)
            self.policy.require(actor, Action.DELIVER_FEEDBACK, AuthTarget(subject_id=final.employee_id))
            self.get_open_cycle(final.cycle_id)
            if final.is_locked:
                raise FinalScoreLocked("Final score has already been delivered", details={"final_score_id": final.id})

            now = self.now()
            final.feedback_notes = feedback_notes
            final.delivered_at = now
            final.delivered_by = actor.user_id
            final.is_locked = True
            final.updated_at = now
            self.final_scores.save(final)
            self.audit.log_action(
                action="final_score_delivered",
                entity_type="final_score",
                entity_id=final.id,
                actor_id=actor.user_id,
                after_state={
                    "weighted_score": final.weighted_score,
                    "bonus_tier": final.bonus_tier,
                    "is_locked": True,
                },
            )
        self._logger.info(f"Final score {final_score_id} delivered by {actor.user_id}")
        return final

    def get_final_score(self, final_score_id: str, actor: Actor) -> FinalScore:
        final = self._get(final_score_id)
        self.policy.require(actor, Action.VIEW_FINAL_SCORE, AuthTarget(subject_id=final.employee_id))
        return final

    def get_my_final_score(self, cycle_id: str, actor: Actor) -> FinalScore:
        final = self.final_scores.find_by_employee_and_cycle(actor.user_id, cycle_id)
        if not final:
            raise FinalScoreNotFound(details={"cycle_id": cycle_id, "employee_id": actor.user_id})
        return final

    def get_team_final_scores(self, cycle_id: str, manager_id: str, actor: Actor) -> List[FinalScore]:
        self.policy.require(actor, Action.VIEW_TEAM, AuthTarget(subject_id=manager_id))
        self.get_cycle(cycle_id)
        reports = self.users.find_direct_reports(manager_id)
        return self.final_scores.find_by_employees_and_cycle([r.id for r in reports], cycle_id)

    def apply_scores(self, final: FinalScore, scores: PillarScores) -> FinalScore:
        result = calculate(scores)
        final.apply_scores(scores)
        final.weighted_score = result.weighted_score
        final.percentage_score = result.percentage_score
        final.bonus_tier = result.bonus_tier
        final.updated_at = self.now()
        return self.final_scores.save(final)

    def _upsert(self, final: Optional[FinalScore], evaluation: ManagerEvaluation) -> FinalScore:
        if final is None:
            final = FinalScore(
                cycle_id=evaluation.cycle_id,
                employee_id=evaluation.employee_id,
                is_locked=False,
                created_at=self.now(),
            )
        return self.apply_scores(final, evaluation.scores)

    def _get(self, final_score_id: str, for_update: bool = False) -> FinalScore:
        final = self.final_scores.find_by_id(final_score_id, for_update=for_update)
        if not final:
            raise FinalScoreNotFound(details={"final_score_id": final_score_id})
        return final
