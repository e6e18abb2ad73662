from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.final_score import FinalScoreCompute, FinalScoreDeliver, FinalScoreResponse
from perf_reviews.services.final_scores import FinalScoreService

router = APIRouter(prefix="/final-scores", tags=["final-scores"])


@router.post("/cycles/{cycle_id}/compute", response_model=FinalScoreResponse)
def compute_final_score(
    cycle_id: str,
    payload: FinalScoreCompute,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return FinalScoreService(db, clock).compute(cycle_id, payload.employee_id, actor)


@router.post("/cycles/{cycle_id}/compute-all", response_model=List[FinalScoreResponse])
def compute_cycle_final_scores(
    cycle_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return FinalScoreService(db, clock).compute_cycle(cycle_id, actor)


@router.get("/cycles/{cycle_id}/me", response_model=FinalScoreResponse)
def get_my_final_score(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return FinalScoreService(db).get_my_final_score(cycle_id, actor)


@router.get("/cycles/{cycle_id}/team", response_model=List[FinalScoreResponse])
def get_team_final_scores(
    cycle_id: str,
    manager_id: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return FinalScoreService(db).get_team_final_scores(cycle_id, manager_id or actor.user_id, actor)


@router.get("/{final_score_id}", response_model=FinalScoreResponse)
def get_final_score(final_score_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return FinalScoreService(db).get_final_score(final_score_id, actor)


@router.post("/{final_score_id}/deliver", response_model=FinalScoreResponse)
def deliver_final_score(
    final_score_id: str,
    payload: FinalScoreDeliver,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return FinalScoreService(db, clock).deliver(final_score_id, payload.feedback_notes, actor)
