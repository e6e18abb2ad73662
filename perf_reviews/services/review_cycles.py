"""
Review Cycle Manager

Owns the cycle state machine and its five ordered deadlines. Cycle status is
written here and nowhere else.
"""
from datetime import datetime
from typing import List, Optional

from perf_reviews.core.clock import as_utc
from perf_reviews.core.exceptions import InvalidReviewCycleStatus, ValidationError
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.review_cycle import ReviewCycle, CycleStatus, CYCLE_TRANSITIONS
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.review_cycle import CycleDeadlines
from perf_reviews.services.authorization import Action
from perf_reviews.services.base import BaseService


class ReviewCycleService(BaseService):
    def create(self, name: str, year: int, deadlines: CycleDeadlines, start_date: datetime, actor: Actor) -> ReviewCycle:
        self.policy.require(actor, Action.MANAGE_CYCLE)
        if not (name or "").strip():
            raise ValidationError("Cycle name is required", details={"field": "name"})

        ordered = [(phase, as_utc(value)) for phase, value in deadlines.ordered()]
        for (prev_phase, prev), (phase, current) in zip(ordered, ordered[1:]):
            if current <= prev:
                raise ValidationError(
                    f"{phase.value} deadline must be after {prev_phase.value} deadline",
                    details={"field": f"{phase.value}_deadline"},
                )

        cycle = ReviewCycle(
            name=name.strip(),
            year=year,
            status=CycleStatus.DRAFT,
            start_date=as_utc(start_date),
            **{f"{phase.value}_deadline": value for phase, value in ordered},
        )
        with self.unit_of_work():
            self.cycles.save(cycle)
            self.audit.log_action(
                action="review_cycle_created",
                entity_type="review_cycle",
                entity_id=cycle.id,
                actor_id=actor.user_id,
                details={"name": cycle.name, "year": year},
            )
        self._logger.info(f"Review cycle {cycle.id} created ({cycle.name} {year})")
        return cycle

    def advance(self, cycle_id: str, actor: Actor) -> ReviewCycle:
        """Move the cycle exactly one step forward."""
        self.policy.require(actor, Action.MANAGE_CYCLE)
        with self.unit_of_work():
            cycle = self.cycles.find_by_id(cycle_id, for_update=True)
            if not cycle:
                raise InvalidReviewCycleStatus(
                    "Review cycle does not exist", details={"cycle_id": cycle_id}
                )
            successors = CYCLE_TRANSITIONS[cycle.status]
            if not successors:
                raise InvalidReviewCycleStatus(
                    f"Review cycle is {cycle.status.value} and cannot advance",
                    details={"from": cycle.status.value},
                )
            previous = cycle.status
            cycle.status = ensure_transition(
                CYCLE_TRANSITIONS, previous, successors[0], InvalidReviewCycleStatus, "review cycle"
            )
            if cycle.status == CycleStatus.COMPLETED:
                cycle.end_date = self.now()
            self.cycles.save(cycle)
            self.audit.log_action(
                action="review_cycle_advanced",
                entity_type="review_cycle",
                entity_id=cycle.id,
                actor_id=actor.user_id,
                before_state={"status": previous},
                after_state={"status": cycle.status},
            )
        self._logger.info(f"Review cycle {cycle_id} advanced {previous.value} -> {cycle.status.value}")
        return cycle

    def get(self, cycle_id: str) -> ReviewCycle:
        return self.get_cycle(cycle_id)

    def list(self) -> List[ReviewCycle]:
        return self.cycles.find_all()

    def get_active(self) -> Optional[ReviewCycle]:
        return self.cycles.find_active()
