from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from perf_reviews.models.manager_evaluation import EvaluationStatus
from perf_reviews.models.user import EngineerLevel
from perf_reviews.schemas.scores import DraftPillarScores
from perf_reviews.schemas.self_review import SelfReviewResponse
from perf_reviews.schemas.peer_feedback import PeerFeedbackAggregate


class ManagerEvaluationSubmit(BaseModel):
    manager_id: str
    scores: dict
    narrative: str
    performance_narrative: Optional[str] = None
    growth_areas: Optional[str] = None
    proposed_level: Optional[EngineerLevel] = None


class ManagerEvaluationDraft(BaseModel):
    manager_id: str
    scores: Optional[DraftPillarScores] = None
    narrative: Optional[str] = None
    performance_narrative: Optional[str] = None
    growth_areas: Optional[str] = None
    proposed_level: Optional[EngineerLevel] = None


class ManagerEvaluationResponse(BaseModel):
    id: str
    cycle_id: str
    employee_id: str
    manager_id: str
    project_impact: Optional[int] = None
    direction: Optional[int] = None
    engineering_excellence: Optional[int] = None
    operational_ownership: Optional[int] = None
    people_impact: Optional[int] = None
    narrative: str
    performance_narrative: Optional[str] = None
    growth_areas: Optional[str] = None
    proposed_level: Optional[EngineerLevel] = None
    status: EvaluationStatus
    submitted_at: Optional[datetime] = None
    calibrated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeReview(BaseModel):
    employee_id: str
    cycle_id: str
    self_review: Optional[SelfReviewResponse] = None
    peer_feedback: PeerFeedbackAggregate
    manager_evaluation: Optional[ManagerEvaluationResponse] = None


class TeamMemberProgress(BaseModel):
    employee_id: str
    name: Optional[str] = None
    self_review_status: Optional[str] = None
    evaluation_status: Optional[str] = None
    peer_feedback_count: int
