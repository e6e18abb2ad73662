from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey, UniqueConstraint
import enum

from perf_reviews.database import Base
from perf_reviews.models.mixins import PillarScoresMixin, new_id


class NominationStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


NOMINATION_TRANSITIONS = {
    NominationStatus.PENDING: (NominationStatus.ACCEPTED, NominationStatus.DECLINED),
    NominationStatus.ACCEPTED: (),
    NominationStatus.DECLINED: (),
}


class PeerNomination(Base):
    __tablename__ = "peer_nominations"
    __table_args__ = (
        UniqueConstraint("cycle_id", "nominator_id", "nominee_id", name="uq_nomination_pair"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    nominator_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    nominee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    status = Column(Enum(NominationStatus), nullable=False, default=NominationStatus.PENDING)
    nominated_at = Column(DateTime(timezone=True), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        return self.status != NominationStatus.DECLINED


class NominationRound(Base):
    """
    One row per nominator and cycle, bumped by every nomination round.

    Concurrent rounds from the same nominator collide on this row: a second
    first round hits the unique constraint, a later one fails its version check.
    """
    __tablename__ = "nomination_rounds"
    __table_args__ = (
        UniqueConstraint("cycle_id", "nominator_id", name="uq_nomination_round_nominator"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False)
    nominator_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    rounds = Column(Integer, nullable=False, default=0)
    last_round_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}


class PeerFeedback(PillarScoresMixin, Base):
    """
    Scored feedback from an accepted nominee.

    ``reviewer_id`` is stored for integrity checks only and is never exposed
    through the aggregation read.
    """
    __tablename__ = "peer_feedback"
    __table_args__ = (
        UniqueConstraint("nomination_id", name="uq_feedback_nomination"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey("review_cycles.id"), nullable=False, index=True)
    nomination_id = Column(String(36), ForeignKey("peer_nominations.id"), nullable=False)
    reviewee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    reviewer_id = Column(String(64), ForeignKey("users.id"), nullable=False)

    strengths = Column(Text, nullable=True)
    growth_areas = Column(Text, nullable=True)
    general_comments = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False)
