from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from perf_reviews.models.calibration import CalibrationStatus


class CalibrationSessionCreate(BaseModel):
    cycle_id: str
    name: str
    department: Optional[str] = None
    facilitator_id: str
    participant_ids: List[str] = Field(default_factory=list)
    scheduled_at: datetime


class CalibrationNote(BaseModel):
    notes: str


class CalibrationAdjustmentCreate(BaseModel):
    manager_evaluation_id: str
    adjusted_scores: dict
    justification: str


class CalibrationSessionResponse(BaseModel):
    id: str
    cycle_id: str
    name: str
    department: Optional[str] = None
    facilitator_id: str
    participant_ids: List[str]
    status: CalibrationStatus
    scheduled_at: datetime
    completed_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CalibrationAdjustmentResponse(BaseModel):
    id: str
    sequence: int
    session_id: str
    manager_evaluation_id: str
    previous_scores: Dict[str, Optional[int]]
    adjusted_scores: Dict[str, int]
    justification: str
    adjusted_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalibrationSessionDetail(BaseModel):
    session: CalibrationSessionResponse
    adjustments: List[CalibrationAdjustmentResponse]


class TierDistribution(BaseModel):
    department: Optional[str] = None
    total: int
    exceeds: int
    meets: int
    below: int
    average_percentage: Optional[Decimal] = None


class CalibrationDashboard(BaseModel):
    cycle_id: str
    submitted_evaluations: int
    calibrated_evaluations: int
    pending_evaluations: int
    departments: List[TierDistribution]
