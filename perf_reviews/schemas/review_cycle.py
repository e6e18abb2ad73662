from datetime import datetime
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.review_cycle import CycleStatus, DeadlinePhase, DEADLINE_ORDER


class CycleDeadlines(BaseModel):
    self_review: datetime
    peer_feedback: datetime
    manager_eval: datetime
    calibration: datetime
    feedback_delivery: datetime

    def ordered(self) -> List[Tuple[DeadlinePhase, datetime]]:
        return [(phase, getattr(self, phase.value)) for phase in DEADLINE_ORDER]


class ReviewCycleCreate(BaseModel):
    name: str
    year: int
    deadlines: CycleDeadlines
    start_date: datetime


class ReviewCycleResponse(BaseModel):
    id: str
    name: str
    year: int
    status: CycleStatus
    self_review_deadline: datetime
    peer_feedback_deadline: datetime
    manager_eval_deadline: datetime
    calibration_deadline: datetime
    feedback_delivery_deadline: datetime
    start_date: datetime
    end_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
