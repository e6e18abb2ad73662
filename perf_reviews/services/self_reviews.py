"""
Self Review Workflow

An employee's scored self-assessment for a cycle. Drafts may be saved until
the self-review deadline; submission is terminal.
"""
from typing import Optional

from perf_reviews.core.exceptions import (
    IncompleteReview,
    ReviewAlreadySubmitted,
    SelfReviewDeadlinePassed,
    SelfReviewNotFound,
)
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.review_cycle import DeadlinePhase
from perf_reviews.models.self_review import SelfReview, ReviewStatus, SELF_REVIEW_TRANSITIONS
from perf_reviews.repositories.reviews import SelfReviewRepository
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.scores import DraftPillarScores
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.validation import complete_scores, ensure_narrative_length


class SelfReviewService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.reviews = SelfReviewRepository(db)

    def submit(self, cycle_id: str, user_id: str, scores, narrative: str, actor: Actor) -> SelfReview:
        self.policy.require(actor, Action.EDIT_SELF_REVIEW, AuthTarget(subject_id=user_id))
        with self.unit_of_work():
            cycle = self.get_open_cycle(cycle_id)
            review = self.reviews.find_by_user_and_cycle(user_id, cycle_id, for_update=True)
            if review and review.is_submitted:
                raise ReviewAlreadySubmitted(details={"self_review_id": review.id})
            self.ensure_before_deadline(cycle, DeadlinePhase.SELF_REVIEW, SelfReviewDeadlinePassed)

            pillar_scores = complete_scores(scores)
            if not (narrative or "").strip():
                raise IncompleteReview("Narrative is required", details={"missing": ["narrative"]})
            ensure_narrative_length(narrative)

            if review is None:
                review = SelfReview(cycle_id=cycle_id, user_id=user_id, status=ReviewStatus.DRAFT)
            review.apply_scores(pillar_scores)
            review.narrative = narrative
            review.status = ensure_transition(
                SELF_REVIEW_TRANSITIONS, review.status, ReviewStatus.SUBMITTED, ReviewAlreadySubmitted, "self review"
            )
            review.submitted_at = self.now()
            self.reviews.save(review)
        self._logger.info(f"Self review submitted by {user_id} for cycle {cycle_id}")
        return review

    def save_draft(
        self,
        cycle_id: str,
        user_id: str,
        actor: Actor,
        scores: Optional[DraftPillarScores] = None,
        narrative: Optional[str] = None,
    ) -> SelfReview:
        self.policy.require(actor, Action.EDIT_SELF_REVIEW, AuthTarget(subject_id=user_id))
        with self.unit_of_work():
            cycle = self.get_open_cycle(cycle_id)
            review = self.reviews.find_by_user_and_cycle(user_id, cycle_id, for_update=True)
            if review and review.is_submitted:
                raise ReviewAlreadySubmitted(details={"self_review_id": review.id})
            self.ensure_before_deadline(cycle, DeadlinePhase.SELF_REVIEW, SelfReviewDeadlinePassed)

            if review is None:
                review = SelfReview(cycle_id=cycle_id, user_id=user_id, status=ReviewStatus.DRAFT, narrative="")
            if scores is not None:
                for pillar, value in scores.model_dump(exclude_unset=True).items():
                    setattr(review, pillar, value)
            if narrative is not None:
                ensure_narrative_length(narrative)
                review.narrative = narrative
            self.reviews.save(review)
        self._logger.info(f"Self review draft saved by {user_id} for cycle {cycle_id}")
        return review

    def get_my_self_review(self, cycle_id: str, actor: Actor) -> SelfReview:
        return self.get_self_review(cycle_id, actor.user_id, actor)

    def get_self_review(self, cycle_id: str, user_id: str, actor: Actor) -> SelfReview:
        self.policy.require(actor, Action.VIEW_SELF_REVIEW, AuthTarget(subject_id=user_id))
        review = self.reviews.find_by_user_and_cycle(user_id, cycle_id)
        if not review:
            raise SelfReviewNotFound(details={"cycle_id": cycle_id, "user_id": user_id})
        return review
