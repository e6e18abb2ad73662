from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import PillarScoresMixin, new_id
from perf_reviews.models.user import EngineerLevel


class EvaluationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    CALIBRATED = "CALIBRATED"


# SUBMITTED -> CALIBRATED is only ever taken by the calibration engine;
# CALIBRATED -> CALIBRATED covers a follow-up correction in calibration.
EVALUATION_TRANSITIONS = {
    EvaluationStatus.DRAFT: (EvaluationStatus.SUBMITTED,),
    EvaluationStatus.SUBMITTED: (EvaluationStatus.CALIBRATED,),
    EvaluationStatus.CALIBRATED: (EvaluationStatus.CALIBRATED,),
}


class ManagerEvaluation(PillarScoresMixin, Base):
    __tablename__ = "manager_evaluations"
    __table_args__ = (
        UniqueConstraint("employee_id", "cycle_id", name="uq_evaluation_employee_cycle"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    employee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    # Fixed at authoring time; a later reorg does not rewrite it
    manager_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    narrative = Column(Text, nullable=False, default="")
    performance_narrative = Column(Text, nullable=True)
    growth_areas = Column(Text, nullable=True)
    proposed_level = Column(Enum(EngineerLevel), nullable=True)

    status = Column(Enum(EvaluationStatus), nullable=False, default=EvaluationStatus.DRAFT)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    calibrated_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_submitted(self) -> bool:
        return self.status in (EvaluationStatus.SUBMITTED, EvaluationStatus.CALIBRATED)

    @property
    def is_calibrated(self) -> bool:
        return self.status == EvaluationStatus.CALIBRATED
