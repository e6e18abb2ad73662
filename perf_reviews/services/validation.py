from typing import Optional

from perf_reviews.core.config import settings
from perf_reviews.core.exceptions import IncompleteReview, NarrativeTooLong, ValidationError
from perf_reviews.schemas.scores import PillarScores
from perf_reviews.services.scoring import coerce_scores, missing_pillars


def count_words(text: Optional[str]) -> int:
    return len((text or "").split())


def ensure_narrative_length(narrative: Optional[str], field: str = "narrative") -> None:
    limit = settings.review.narrative_max_words
    words = count_words(narrative)
    if words > limit:
        raise NarrativeTooLong(
            f"{field.replace('_', ' ').capitalize()} must not exceed {limit} words",
            details={"field": field, "words": words, "limit": limit},
        )


def ensure_justification(text: Optional[str], field: str = "justification") -> str:
    value = (text or "").strip()
    low = settings.review.justification_min_length
    high = settings.review.justification_max_length
    if not low <= len(value) <= high:
        raise ValidationError(
            f"{field.capitalize()} must be between {low} and {high} characters",
            details={"field": field, "length": len(value)},
        )
    return value


def complete_scores(value) -> PillarScores:
    """Scores for a submission: missing dimensions are incomplete, bad values invalid."""
    missing = missing_pillars(value)
    if missing:
        raise IncompleteReview("All five scores are required", details={"missing": missing})
    return coerce_scores(value)
