from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.calibration import (
    CalibrationAdjustmentCreate,
    CalibrationAdjustmentResponse,
    CalibrationDashboard,
    CalibrationNote,
    CalibrationSessionCreate,
    CalibrationSessionDetail,
    CalibrationSessionResponse,
)
from perf_reviews.services.calibration import CalibrationService

router = APIRouter(prefix="/calibration", tags=["calibration"])


@router.post("/sessions", response_model=CalibrationSessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: CalibrationSessionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db, clock).create_session(
        payload.cycle_id,
        payload.name,
        payload.facilitator_id,
        payload.participant_ids,
        payload.scheduled_at,
        actor,
        department=payload.department,
    )


@router.get("/cycles/{cycle_id}/sessions", response_model=List[CalibrationSessionResponse])
def list_sessions(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return CalibrationService(db).list_sessions(cycle_id, actor)


@router.get("/cycles/{cycle_id}/dashboard", response_model=CalibrationDashboard)
def calibration_dashboard(
    cycle_id: str,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db).dashboard(cycle_id, actor, department=department)


@router.get("/sessions/{session_id}", response_model=CalibrationSessionDetail)
def get_session(session_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return CalibrationService(db).get_session(session_id, actor)


@router.post("/sessions/{session_id}/start", response_model=CalibrationSessionResponse)
def start_session(
    session_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db, clock).start_session(session_id, actor)


@router.put("/sessions/{session_id}/notes", response_model=CalibrationSessionResponse)
def record_note(
    session_id: str,
    payload: CalibrationNote,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db, clock).record_note(session_id, payload.notes, actor)


@router.post(
    "/sessions/{session_id}/adjustments",
    response_model=CalibrationAdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def apply_adjustment(
    session_id: str,
    payload: CalibrationAdjustmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db, clock).apply_adjustment(
        session_id, payload.manager_evaluation_id, payload.adjusted_scores, payload.justification, actor
    )


@router.get("/sessions/{session_id}/adjustments", response_model=List[CalibrationAdjustmentResponse])
def list_adjustments(session_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return CalibrationService(db).list_adjustments(session_id, actor)


@router.post("/sessions/{session_id}/lock", response_model=CalibrationSessionResponse)
def lock_session(
    session_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return CalibrationService(db, clock).lock(session_id, actor)
