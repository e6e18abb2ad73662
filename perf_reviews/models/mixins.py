import uuid
from typing import Optional
from sqlalchemy import Column, Integer

from perf_reviews.schemas.scores import PILLARS, PillarScores


def new_id() -> str:
    return str(uuid.uuid4())


class PillarScoresMixin:
    """Five nullable score columns; all five are set once a review is complete."""

    project_impact = Column(Integer, nullable=True)
    direction = Column(Integer, nullable=True)
    engineering_excellence = Column(Integer, nullable=True)
    operational_ownership = Column(Integer, nullable=True)
    people_impact = Column(Integer, nullable=True)

    @property
    def scores(self) -> Optional[PillarScores]:
        values = {p: getattr(self, p) for p in PILLARS}
        if any(v is None for v in values.values()):
            return None
        return PillarScores(**values)

    @property
    def has_all_scores(self) -> bool:
        return all(getattr(self, p) is not None for p in PILLARS)

    def apply_scores(self, scores: PillarScores) -> None:
        for pillar in PILLARS:
            setattr(self, pillar, getattr(scores, pillar))

    def scores_snapshot(self) -> dict:
        return {p: getattr(self, p) for p in PILLARS}
