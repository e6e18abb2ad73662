from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import PillarScoresMixin, new_id


class ReviewStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"


SELF_REVIEW_TRANSITIONS = {
    ReviewStatus.DRAFT: (ReviewStatus.SUBMITTED,),
    ReviewStatus.SUBMITTED: (),
}


class SelfReview(PillarScoresMixin, Base):
    __tablename__ = "self_reviews"
    __table_args__ = (
        UniqueConstraint("cycle_id", "user_id", name="uq_self_review_cycle_user"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    narrative = Column(Text, nullable=False, default="")
    status = Column(Enum(ReviewStatus), nullable=False, default=ReviewStatus.DRAFT)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_submitted(self) -> bool:
        return self.status == ReviewStatus.SUBMITTED
