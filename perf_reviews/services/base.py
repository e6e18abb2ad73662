import logging
from contextlib import contextmanager
from typing import Optional, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from perf_reviews.core.clock import Clock, utcnow
from perf_reviews.core.exceptions import (
    AppException,
    ConcurrentModification,
    DeadlinePassed,
    ReviewCycleNotFound,
    ReviewCycleNotOpen,
)
from perf_reviews.models.review_cycle import ReviewCycle, DeadlinePhase
from perf_reviews.repositories.review_cycles import ReviewCycleRepository
from perf_reviews.repositories.users import UserRepository
from perf_reviews.services.authorization import ReviewAuthorizationPolicy


class BaseService:
    """
    Common plumbing for workflow services: the session, the injected clock,
    the authorization policy and a per-operation unit of work.
    """

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or utcnow
        self._logger = logging.getLogger(self.__class__.__module__)
        self.users = UserRepository(db)
        self.cycles = ReviewCycleRepository(db)
        self.policy = ReviewAuthorizationPolicy(self.users)

    def now(self):
        return self.clock()

    @property
    def audit(self):
        from perf_reviews.services.audit import AuditService
        return AuditService(self.db, self.clock)

    @contextmanager
    def unit_of_work(self):
        """Commit once on success; roll back everything on any failure."""
        try:
            yield
            self.db.commit()
        except AppException:
            self.db.rollback()
            raise
        except (StaleDataError, IntegrityError) as exc:
            self.db.rollback()
            self._logger.warning(f"Conflicting write rejected: {exc}")
            raise ConcurrentModification() from exc
        except Exception:
            self.db.rollback()
            raise

    def get_cycle(self, cycle_id: str) -> ReviewCycle:
        cycle = self.cycles.find_by_id(cycle_id)
        if not cycle:
            raise ReviewCycleNotFound(details={"cycle_id": cycle_id})
        return cycle

    def get_open_cycle(self, cycle_id: str) -> ReviewCycle:
        cycle = self.get_cycle(cycle_id)
        if not cycle.is_open:
            raise ReviewCycleNotOpen(
                f"Review cycle is {cycle.status.value}",
                details={"cycle_id": cycle_id, "status": cycle.status.value},
            )
        return cycle

    def ensure_before_deadline(self, cycle: ReviewCycle, phase: DeadlinePhase, error_cls: Type[DeadlinePassed]) -> None:
        if cycle.has_deadline_passed(phase, self.now()):
            raise error_cls(details={"deadline": cycle.deadline_for(phase).isoformat()})

    def log_warning(self, message: str):
        self._logger.warning(message)
