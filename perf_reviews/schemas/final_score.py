from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.final_score import BonusTier


class FinalScoreCompute(BaseModel):
    employee_id: str


class FinalScoreDeliver(BaseModel):
    feedback_notes: Optional[str] = None


class FinalScoreResponse(BaseModel):
    id: str
    cycle_id: str
    employee_id: str
    project_impact: int
    direction: int
    engineering_excellence: int
    operational_ownership: int
    people_impact: int
    weighted_score: Decimal
    percentage_score: Decimal
    bonus_tier: BonusTier
    feedback_notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    delivered_by: Optional[str] = None
    is_locked: bool

    model_config = ConfigDict(from_attributes=True)
