from decimal import Decimal
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

# Fixed order of the five review dimensions
PILLARS: Tuple[str, ...] = (
    "project_impact",
    "direction",
    "engineering_excellence",
    "operational_ownership",
    "people_impact",
)

MIN_PILLAR_SCORE = 0
MAX_PILLAR_SCORE = 4


class PillarScores(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    project_impact: int = Field(..., ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    direction: int = Field(..., ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    engineering_excellence: int = Field(..., ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    operational_ownership: int = Field(..., ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    people_impact: int = Field(..., ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)

    def as_tuple(self) -> Tuple[int, ...]:
        return tuple(getattr(self, p) for p in PILLARS)

    @classmethod
    def uniform(cls, value: int) -> "PillarScores":
        return cls(**{p: value for p in PILLARS})


class DraftPillarScores(BaseModel):
    """Partially filled scores, accepted while a review is still a draft."""
    model_config = ConfigDict(extra="forbid")

    project_impact: Optional[int] = Field(None, ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    direction: Optional[int] = Field(None, ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    engineering_excellence: Optional[int] = Field(None, ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    operational_ownership: Optional[int] = Field(None, ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)
    people_impact: Optional[int] = Field(None, ge=MIN_PILLAR_SCORE, le=MAX_PILLAR_SCORE)


class AveragedPillarScores(BaseModel):
    project_impact: Decimal
    direction: Decimal
    engineering_excellence: Decimal
    operational_ownership: Decimal
    people_impact: Decimal
