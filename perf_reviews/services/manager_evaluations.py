"""
Manager Evaluation Workflow

A direct manager's scored assessment of one employee per cycle. CALIBRATED is
never set here; only the calibration engine moves an evaluation there.
"""
from typing import List, Optional

from perf_reviews.core.exceptions import (
    IncompleteReview,
    ManagerEvalDeadlinePassed,
    ManagerEvaluationNotFound,
    ReviewAlreadySubmitted,
    UserNotFound,
)
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.manager_evaluation import (
    ManagerEvaluation,
    EvaluationStatus,
    EVALUATION_TRANSITIONS,
)
from perf_reviews.models.review_cycle import DeadlinePhase
from perf_reviews.models.user import EngineerLevel
from perf_reviews.repositories.reviews import (
    ManagerEvaluationRepository,
    PeerFeedbackRepository,
    SelfReviewRepository,
)
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.manager_evaluation import (
    EmployeeReview,
    ManagerEvaluationResponse,
    TeamMemberProgress,
)
from perf_reviews.schemas.scores import DraftPillarScores
from perf_reviews.schemas.self_review import SelfReviewResponse
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.peer_feedback import PeerFeedbackService
from perf_reviews.services.validation import complete_scores, ensure_narrative_length


class ManagerEvaluationService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.evaluations = ManagerEvaluationRepository(db)
        self.self_reviews = SelfReviewRepository(db)
        self.peer_feedback = PeerFeedbackRepository(db)

    def submit(
        self,
        cycle_id: str,
        employee_id: str,
        manager_id: str,
        scores,
        narrative: str,
        actor: Actor,
        performance_narrative: Optional[str] = None,
        growth_areas: Optional[str] = None,
        proposed_level: Optional[EngineerLevel] = None,
    ) -> ManagerEvaluation:
        self._require_author(actor, employee_id, manager_id)
        with self.unit_of_work():
            cycle = self.get_open_cycle(cycle_id)
            evaluation = self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id, for_update=True)
            if evaluation and evaluation.is_submitted:
                raise ReviewAlreadySubmitted(
                    "Manager evaluation has already been submitted",
                    details={"manager_evaluation_id": evaluation.id},
                )
            self.ensure_before_deadline(cycle, DeadlinePhase.MANAGER_EVAL, ManagerEvalDeadlinePassed)

            pillar_scores = complete_scores(scores)
            if not (narrative or "").strip():
                raise IncompleteReview("Narrative is required", details={"missing": ["narrative"]})
            ensure_narrative_length(narrative)
            ensure_narrative_length(performance_narrative, "performance_narrative")
            ensure_narrative_length(growth_areas, "growth_areas")

            if evaluation is None:
                evaluation = ManagerEvaluation(
                    cycle_id=cycle_id, employee_id=employee_id, status=EvaluationStatus.DRAFT
                )
            evaluation.manager_id = manager_id
            evaluation.apply_scores(pillar_scores)
            evaluation.narrative = narrative
            evaluation.performance_narrative = performance_narrative
            evaluation.growth_areas = growth_areas
            evaluation.proposed_level = proposed_level
            evaluation.status = ensure_transition(
                EVALUATION_TRANSITIONS, evaluation.status, EvaluationStatus.SUBMITTED,
                ReviewAlreadySubmitted, "manager evaluation",
            )
            evaluation.submitted_at = self.now()
            self.evaluations.save(evaluation)
        self._logger.info(f"Manager evaluation for {employee_id} submitted by {manager_id} in cycle {cycle_id}")
        return evaluation

    def save_draft(
        self,
        cycle_id: str,
        employee_id: str,
        manager_id: str,
        actor: Actor,
        scores: Optional[DraftPillarScores] = None,
        narrative: Optional[str] = None,
        performance_narrative: Optional[str] = None,
        growth_areas: Optional[str] = None,
        proposed_level: Optional[EngineerLevel] = None,
    ) -> ManagerEvaluation:
        self._require_author(actor, employee_id, manager_id)
        with self.unit_of_work():
            cycle = self.get_open_cycle(cycle_id)
            evaluation = self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id, for_update=True)
            if evaluation and evaluation.is_submitted:
                raise ReviewAlreadySubmitted(
                    "Manager evaluation has already been submitted",
                    details={"manager_evaluation_id": evaluation.id},
                )
            self.ensure_before_deadline(cycle, DeadlinePhase.MANAGER_EVAL, ManagerEvalDeadlinePassed)

            if evaluation is None:
                evaluation = ManagerEvaluation(
                    cycle_id=cycle_id, employee_id=employee_id, status=EvaluationStatus.DRAFT, narrative=""
                )
            evaluation.manager_id = manager_id
            if scores is not None:
                for pillar, value in scores.model_dump(exclude_unset=True).items():
                    setattr(evaluation, pillar, value)
            for field, value in (
                ("narrative", narrative),
                ("performance_narrative", performance_narrative),
                ("growth_areas", growth_areas),
            ):
                if value is not None:
                    ensure_narrative_length(value, field)
                    setattr(evaluation, field, value)
            if proposed_level is not None:
                evaluation.proposed_level = proposed_level
            self.evaluations.save(evaluation)
        self._logger.info(f"Manager evaluation draft for {employee_id} saved by {manager_id}")
        return evaluation

    def get_evaluation(self, cycle_id: str, employee_id: str, actor: Actor) -> ManagerEvaluation:
        evaluation = self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        if not evaluation:
            raise ManagerEvaluationNotFound(details={"cycle_id": cycle_id, "employee_id": employee_id})
        self.policy.require(
            actor,
            Action.VIEW_MANAGER_EVALUATION,
            AuthTarget(subject_id=employee_id, author_id=evaluation.manager_id),
        )
        return evaluation

    def get_employee_review(self, cycle_id: str, employee_id: str, actor: Actor) -> EmployeeReview:
        """Everything a manager consults while writing an evaluation."""
        self.get_cycle(cycle_id)
        if not self.users.find_by_id(employee_id):
            raise UserNotFound(details={"user_id": employee_id})
        self.policy.require(actor, Action.VIEW_MANAGER_EVALUATION, AuthTarget(subject_id=employee_id))

        self_review = self.self_reviews.find_by_user_and_cycle(employee_id, cycle_id)
        evaluation = self.evaluations.find_by_employee_and_cycle(employee_id, cycle_id)
        peers = PeerFeedbackService(self.db, self.clock).summarize(cycle_id, employee_id)
        return EmployeeReview(
            employee_id=employee_id,
            cycle_id=cycle_id,
            self_review=SelfReviewResponse.model_validate(self_review) if self_review else None,
            peer_feedback=peers,
            manager_evaluation=ManagerEvaluationResponse.model_validate(evaluation) if evaluation else None,
        )

    def get_team_reviews(self, cycle_id: str, manager_id: str, actor: Actor) -> List[TeamMemberProgress]:
        self.policy.require(actor, Action.VIEW_TEAM, AuthTarget(subject_id=manager_id))
        self.get_cycle(cycle_id)
        progress = []
        for report in self.users.find_direct_reports(manager_id):
            self_review = self.self_reviews.find_by_user_and_cycle(report.id, cycle_id)
            evaluation = self.evaluations.find_by_employee_and_cycle(report.id, cycle_id)
            progress.append(TeamMemberProgress(
                employee_id=report.id,
                name=report.name,
                self_review_status=self_review.status.value if self_review else None,
                evaluation_status=evaluation.status.value if evaluation else None,
                peer_feedback_count=self.peer_feedback.count_for_reviewee(report.id, cycle_id),
            ))
        return progress

    def _require_author(self, actor: Actor, employee_id: str, manager_id: str) -> None:
        if not self.users.find_by_id(employee_id):
            raise UserNotFound(details={"user_id": employee_id})
        self.policy.require(
            actor,
            Action.AUTHOR_MANAGER_EVALUATION,
            AuthTarget(subject_id=employee_id, author_id=manager_id),
        )
