"""
Score Adjustment Request Workflow

Post-delivery disputes against a locked final score. Approval rewrites the
score from the proposed dimensions and keeps it locked; rejection leaves it
untouched.
"""
from typing import List, Optional

from perf_reviews.core.exceptions import (
    AdjustmentAlreadyPending,
    FinalScoreNotFound,
    FinalScoreNotLocked,
    InvalidStateTransition,
    ScoreAdjustmentRequestNotFound,
    ValidationError,
)
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.score_adjustment import (
    ScoreAdjustmentRequest,
    AdjustmentRequestStatus,
    ADJUSTMENT_REQUEST_TRANSITIONS,
)
from perf_reviews.repositories.scores import FinalScoreRepository, ScoreAdjustmentRequestRepository
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.scores import PillarScores
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.final_scores import FinalScoreService
from perf_reviews.services.scoring import calculate, coerce_scores


class ScoreAdjustmentService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.requests = ScoreAdjustmentRequestRepository(db)
        self.final_scores = FinalScoreRepository(db)

    def request(self, final_score_id: str, proposed_scores, reason: str, actor: Actor) -> ScoreAdjustmentRequest:
        with self.unit_of_work():
            final = self.final_scores.find_by_id(final_score_id, for_update=True)
            if not final:
                raise FinalScoreNotFound(details={"final_score_id": final_score_id})
            self.policy.require(actor, Action.REQUEST_SCORE_ADJUSTMENT, AuthTarget(subject_id=final.employee_id))
            self.get_open_cycle(final.cycle_id)
            if not final.is_locked:
                raise FinalScoreNotLocked(details={"final_score_id": final.id})
            if self.requests.find_pending_for_final_score(final.id):
                raise AdjustmentAlreadyPending(details={"final_score_id": final.id})
            if not (reason or "").strip():
                raise ValidationError("A reason is required", details={"field": "reason"})
            scores = coerce_scores(proposed_scores)

            adjustment = ScoreAdjustmentRequest(
                final_score_id=final.id,
                previous_score=final.weighted_score,
                requested_score=calculate(scores).weighted_score,
                proposed_scores=scores.model_dump(),
                reason=reason.strip(),
                status=AdjustmentRequestStatus.PENDING,
                requested_by=actor.user_id,
                requested_at=self.now(),
            )
            self.requests.save(adjustment)
        self._logger.info(
            f"Score adjustment {adjustment.id} requested on final score {final_score_id}: "
            f"{adjustment.previous_score} -> {adjustment.requested_score}"
        )
        return adjustment

    def review(self, request_id: str, approve: bool, actor: Actor, review_notes: Optional[str] = None) -> ScoreAdjustmentRequest:
        self.policy.require(actor, Action.REVIEW_SCORE_ADJUSTMENT)
        with self.unit_of_work():
            adjustment = self.requests.find_by_id(request_id, for_update=True)
            if not adjustment:
                raise ScoreAdjustmentRequestNotFound(details={"request_id": request_id})
            target = AdjustmentRequestStatus.APPROVED if approve else AdjustmentRequestStatus.REJECTED
            adjustment.status = ensure_transition(
                ADJUSTMENT_REQUEST_TRANSITIONS, adjustment.status, target,
                InvalidStateTransition, "score adjustment request",
            )
            if not approve and not (review_notes or "").strip():
                raise ValidationError("Review notes are required when rejecting", details={"field": "review_notes"})

            adjustment.reviewed_by = actor.user_id
            adjustment.reviewed_at = self.now()
            adjustment.review_notes = review_notes

            final = self.final_scores.find_by_id(adjustment.final_score_id, for_update=True)
            before = {"weighted_score": final.weighted_score, "bonus_tier": final.bonus_tier}
            if approve:
                FinalScoreService(self.db, self.clock).apply_scores(final, PillarScores(**adjustment.proposed_scores))
                final.is_locked = True
            self.requests.save(adjustment)
            self.audit.log_action(
                action=f"score_adjustment_{target.value.lower()}",
                entity_type="final_score",
                entity_id=final.id,
                actor_id=actor.user_id,
                details={"request_id": adjustment.id, "review_notes": review_notes},
                before_state=before,
                after_state={"weighted_score": final.weighted_score, "bonus_tier": final.bonus_tier},
            )
        self._logger.info(f"Score adjustment {request_id} {target.value.lower()} by {actor.user_id}")
        return adjustment

    def get_request(self, request_id: str, actor: Actor) -> ScoreAdjustmentRequest:
        adjustment = self.requests.find_by_id(request_id)
        if not adjustment:
            raise ScoreAdjustmentRequestNotFound(details={"request_id": request_id})
        final = self.final_scores.find_by_id(adjustment.final_score_id)
        if not self.policy.evaluate(actor, Action.REVIEW_SCORE_ADJUSTMENT).allowed:
            self.policy.require(actor, Action.REQUEST_SCORE_ADJUSTMENT, AuthTarget(subject_id=final.employee_id))
        return adjustment

    def list_pending(self, actor: Actor) -> List[ScoreAdjustmentRequest]:
        self.policy.require(actor, Action.REVIEW_SCORE_ADJUSTMENT)
        return self.requests.find_by_status(AdjustmentRequestStatus.PENDING)

    def list_for_final_score(self, final_score_id: str, actor: Actor) -> List[ScoreAdjustmentRequest]:
        final = self.final_scores.find_by_id(final_score_id)
        if not final:
            raise FinalScoreNotFound(details={"final_score_id": final_score_id})
        self.policy.require(actor, Action.VIEW_FINAL_SCORE, AuthTarget(subject_id=final.employee_id))
        return self.requests.find_by_final_score(final.id)
