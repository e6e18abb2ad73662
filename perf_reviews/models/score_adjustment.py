from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, JSON, Numeric
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import new_id


class AdjustmentRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


ADJUSTMENT_REQUEST_TRANSITIONS = {
    AdjustmentRequestStatus.PENDING: (AdjustmentRequestStatus.APPROVED, AdjustmentRequestStatus.REJECTED),
    AdjustmentRequestStatus.APPROVED: (),
    AdjustmentRequestStatus.REJECTED: (),
}


class ScoreAdjustmentRequest(Base):
    __tablename__ = "score_adjustment_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    final_score_id = Column(String(36), ForeignKey("final_scores.id"), nullable=False, index=True)

    previous_score = Column(Numeric(4, 2), nullable=False)
    requested_score = Column(Numeric(4, 2), nullable=False)
    proposed_scores = Column(JSON, nullable=False)
    reason = Column(Text, nullable=False)

    status = Column(Enum(AdjustmentRequestStatus), nullable=False, default=AdjustmentRequestStatus.PENDING)
    requested_by = Column(String(64), ForeignKey("users.id"), nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False)
    reviewed_by = Column(String(64), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
