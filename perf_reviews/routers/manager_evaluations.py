from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.manager_evaluation import (
    EmployeeReview,
    ManagerEvaluationDraft,
    ManagerEvaluationResponse,
    ManagerEvaluationSubmit,
    TeamMemberProgress,
)
from perf_reviews.services.manager_evaluations import ManagerEvaluationService

router = APIRouter(prefix="/manager-evaluations", tags=["manager-evaluations"])


@router.post("/{cycle_id}/employees/{employee_id}/submit", response_model=ManagerEvaluationResponse)
def submit_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    payload: ManagerEvaluationSubmit,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ManagerEvaluationService(db, clock).submit(
        cycle_id,
        employee_id,
        payload.manager_id,
        payload.scores,
        payload.narrative,
        actor,
        performance_narrative=payload.performance_narrative,
        growth_areas=payload.growth_areas,
        proposed_level=payload.proposed_level,
    )


@router.put("/{cycle_id}/employees/{employee_id}/draft", response_model=ManagerEvaluationResponse)
def save_manager_evaluation_draft(
    cycle_id: str,
    employee_id: str,
    payload: ManagerEvaluationDraft,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ManagerEvaluationService(db, clock).save_draft(
        cycle_id,
        employee_id,
        payload.manager_id,
        actor,
        scores=payload.scores,
        narrative=payload.narrative,
        performance_narrative=payload.performance_narrative,
        growth_areas=payload.growth_areas,
        proposed_level=payload.proposed_level,
    )


@router.get("/{cycle_id}/employees/{employee_id}", response_model=ManagerEvaluationResponse)
def get_manager_evaluation(
    cycle_id: str,
    employee_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return ManagerEvaluationService(db).get_evaluation(cycle_id, employee_id, actor)


@router.get("/{cycle_id}/employees/{employee_id}/review", response_model=EmployeeReview)
def get_employee_review(
    cycle_id: str,
    employee_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return ManagerEvaluationService(db).get_employee_review(cycle_id, employee_id, actor)


@router.get("/{cycle_id}/team", response_model=List[TeamMemberProgress])
def get_team_reviews(
    cycle_id: str,
    manager_id: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return ManagerEvaluationService(db).get_team_reviews(cycle_id, manager_id or actor.user_id, actor)
