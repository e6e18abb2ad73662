from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, Boolean, Numeric, UniqueConstraint
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import PillarScoresMixin, new_id


class BonusTier(str, enum.Enum):
    EXCEEDS = "EXCEEDS"
    MEETS = "MEETS"
    BELOW = "BELOW"


class FinalScore(PillarScoresMixin, Base):
    __tablename__ = "final_scores"
    __table_args__ = (
        UniqueConstraint("cycle_id", "employee_id", name="uq_final_score_cycle_employee"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    employee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    weighted_score = Column(Numeric(4, 2), nullable=False)
    percentage_score = Column(Numeric(5, 1), nullable=False)
    bonus_tier = Column(Enum(BonusTier), nullable=False)

    feedback_notes = Column(Text, nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    delivered_by = Column(String(64), ForeignKey("users.id"), nullable=True)
    is_locked = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __mapper_args__ = {"version_id_col": version}
