from sqlalchemy import Column, Integer, String, Enum, DateTime
from sqlalchemy.sql import func
import enum

from perf_reviews.database import Base
from perf_reviews.core.clock import as_utc
from perf_reviews.models.mixins import new_id


class CycleStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CALIBRATING = "CALIBRATING"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"


# Forward-only, one step at a time; CLOSED is terminal.
CYCLE_TRANSITIONS = {
    CycleStatus.DRAFT: (CycleStatus.ACTIVE,),
    CycleStatus.ACTIVE: (CycleStatus.CALIBRATING,),
    CycleStatus.CALIBRATING: (CycleStatus.COMPLETED,),
    CycleStatus.COMPLETED: (CycleStatus.CLOSED,),
    CycleStatus.CLOSED: (),
}


class DeadlinePhase(str, enum.Enum):
    SELF_REVIEW = "self_review"
    PEER_FEEDBACK = "peer_feedback"
    MANAGER_EVAL = "manager_eval"
    CALIBRATION = "calibration"
    FEEDBACK_DELIVERY = "feedback_delivery"


# Phases in the order their deadlines must fall
DEADLINE_ORDER = (
    DeadlinePhase.SELF_REVIEW,
    DeadlinePhase.PEER_FEEDBACK,
    DeadlinePhase.MANAGER_EVAL,
    DeadlinePhase.CALIBRATION,
    DeadlinePhase.FEEDBACK_DELIVERY,
)


class ReviewCycle(Base):
    __tablename__ = "review_cycles"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    year = Column(Integer, nullable=False, index=True)
    status = Column(Enum(CycleStatus), nullable=False, default=CycleStatus.DRAFT)

    self_review_deadline = Column(DateTime(timezone=True), nullable=False)
    peer_feedback_deadline = Column(DateTime(timezone=True), nullable=False)
    manager_eval_deadline = Column(DateTime(timezone=True), nullable=False)
    calibration_deadline = Column(DateTime(timezone=True), nullable=False)
    feedback_delivery_deadline = Column(DateTime(timezone=True), nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<ReviewCycle {self.name} {self.year} ({self.status.value})>"

    def deadline_for(self, phase: DeadlinePhase):
        return as_utc(getattr(self, f"{phase.value}_deadline"))

    def has_deadline_passed(self, phase: DeadlinePhase, now) -> bool:
        return now > self.deadline_for(phase)

    @property
    def is_open(self) -> bool:
        """Workflows may write only between activation and closing."""
        return self.status not in (CycleStatus.DRAFT, CycleStatus.CLOSED)
