from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.score_adjustment import AdjustmentRequestStatus


class ScoreAdjustmentCreate(BaseModel):
    final_score_id: str
    proposed_scores: dict
    reason: str


class ScoreAdjustmentReview(BaseModel):
    approve: bool
    review_notes: Optional[str] = None


class ScoreAdjustmentResponse(BaseModel):
    id: str
    final_score_id: str
    previous_score: Decimal
    requested_score: Decimal
    proposed_scores: Dict[str, int]
    reason: str
    status: AdjustmentRequestStatus
    requested_by: str
    requested_at: datetime
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
