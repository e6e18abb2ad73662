"""
Score Calculation Service

Pure, deterministic mapping from five pillar scores to a weighted score,
percentage and bonus tier. No I/O; safe to call any number of times.

- weighted score   = arithmetic mean of the five pillars (equal weights)
- percentage score = weighted / 4 * 100, one decimal, ROUND_HALF_UP
- bonus tier       = EXCEEDS (>= 85), MEETS (>= 50), BELOW otherwise
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Union

import pydantic

from perf_reviews.core.exceptions import ValidationError
from perf_reviews.models.final_score import BonusTier
from perf_reviews.schemas.scores import PILLARS, MAX_PILLAR_SCORE, PillarScores

EXCEEDS_THRESHOLD = Decimal("85")
MEETS_THRESHOLD = Decimal("50")

_ONE_PLACE = Decimal("0.1")
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class ScoreResult:
    weighted_score: Decimal
    percentage_score: Decimal
    bonus_tier: BonusTier


def coerce_scores(value: Union[PillarScores, Mapping[str, Any]]) -> PillarScores:
    """Turn a mapping into PillarScores, reporting range errors as ValidationError."""
    if isinstance(value, PillarScores):
        return value
    if value is None:
        raise ValidationError("Scores are required")
    try:
        return PillarScores.model_validate(dict(value))
    except pydantic.ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError(
            f"Each of the five scores must be an integer between 0 and {MAX_PILLAR_SCORE}",
            details={"errors": errors},
        ) from exc


def bonus_tier_for(percentage: Decimal) -> BonusTier:
    if percentage >= EXCEEDS_THRESHOLD:
        return BonusTier.EXCEEDS
    if percentage >= MEETS_THRESHOLD:
        return BonusTier.MEETS
    return BonusTier.BELOW


def calculate(scores: Union[PillarScores, Mapping[str, Any]]) -> ScoreResult:
    pillar_scores = coerce_scores(scores)
    total = sum(Decimal(v) for v in pillar_scores.as_tuple())
    weighted = (total / Decimal(len(PILLARS))).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    percentage = (total / Decimal(len(PILLARS)) / Decimal(MAX_PILLAR_SCORE) * Decimal(100)).quantize(
        _ONE_PLACE, rounding=ROUND_HALF_UP
    )
    return ScoreResult(
        weighted_score=weighted,
        percentage_score=percentage,
        bonus_tier=bonus_tier_for(percentage),
    )


def missing_pillars(value) -> List[str]:
    if value is None:
        return list(PILLARS)
    if isinstance(value, PillarScores):
        return []
    return [p for p in PILLARS if value.get(p) is None]
