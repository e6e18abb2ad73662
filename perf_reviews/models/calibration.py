from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import new_id


class CalibrationStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


SESSION_TRANSITIONS = {
    CalibrationStatus.SCHEDULED: (CalibrationStatus.IN_PROGRESS, CalibrationStatus.COMPLETED),
    CalibrationStatus.IN_PROGRESS: (CalibrationStatus.COMPLETED,),
    CalibrationStatus.COMPLETED: (),
}


class CalibrationSession(Base):
    __tablename__ = "calibration_sessions"

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    department = Column(String, nullable=True)
    facilitator_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    participant_ids = Column(JSON, nullable=False, default=list)

    status = Column(Enum(CalibrationStatus), nullable=False, default=CalibrationStatus.SCHEDULED)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    locked_by = Column(String(64), ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None


class CalibrationAdjustment(Base):
    """Append-only audit record; corrections are new rows, ordered by ``sequence``."""
    __tablename__ = "calibration_adjustments"

    sequence = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, index=True, default=new_id)
    session_id = Column(String(36), ForeignKey("calibration_sessions.id"), nullable=False, index=True)
    manager_evaluation_id = Column(String(36), ForeignKey("manager_evaluations.id"), nullable=False, index=True)
    previous_scores = Column(JSON, nullable=False)
    adjusted_scores = Column(JSON, nullable=False)
    justification = Column(Text, nullable=False)
    adjusted_by = Column(String(64), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
