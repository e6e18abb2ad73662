from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.self_review import ReviewStatus
from perf_reviews.schemas.scores import DraftPillarScores


class SelfReviewSubmit(BaseModel):
    # Range errors are reported by the workflow as VALIDATION, not by the parser
    scores: dict
    narrative: str


class SelfReviewDraft(BaseModel):
    scores: Optional[DraftPillarScores] = None
    narrative: Optional[str] = None


class SelfReviewResponse(BaseModel):
    id: str
    cycle_id: str
    user_id: str
    project_impact: Optional[int] = None
    direction: Optional[int] = None
    engineering_excellence: Optional[int] = None
    operational_ownership: Optional[int] = None
    people_impact: Optional[int] = None
    narrative: str
    status: ReviewStatus
    submitted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
