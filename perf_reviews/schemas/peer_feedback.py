from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.peer_feedback import NominationStatus
from perf_reviews.schemas.scores import AveragedPillarScores


class NominationCreate(BaseModel):
    nominee_ids: List[str]


class NominationRespond(BaseModel):
    accept: bool


class PeerFeedbackSubmit(BaseModel):
    scores: dict
    strengths: Optional[str] = None
    growth_areas: Optional[str] = None
    general_comments: Optional[str] = None


class NominationResponse(BaseModel):
    id: str
    cycle_id: str
    nominator_id: str
    nominee_id: str
    status: NominationStatus
    nominated_at: datetime
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PeerFeedbackReceipt(BaseModel):
    """Acknowledgement returned to the reviewer; carries no reviewee-side data."""
    id: str
    nomination_id: str
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PeerComments(BaseModel):
    strengths: List[str] = []
    growth_areas: List[str] = []
    general: List[str] = []


class PeerFeedbackAggregate(BaseModel):
    cycle_id: str
    reviewee_id: str
    count: int
    averages: Optional[AveragedPillarScores] = None
    comments: Optional[PeerComments] = None
    comments_withheld: bool
