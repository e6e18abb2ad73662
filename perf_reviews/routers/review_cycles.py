from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.review_cycle import ReviewCycleCreate, ReviewCycleResponse
from perf_reviews.services.review_cycles import ReviewCycleService

router = APIRouter(prefix="/review-cycles", tags=["review-cycles"])


@router.post("", response_model=ReviewCycleResponse, status_code=status.HTTP_201_CREATED)
def create_cycle(
    payload: ReviewCycleCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ReviewCycleService(db, clock).create(
        payload.name, payload.year, payload.deadlines, payload.start_date, actor
    )


@router.get("", response_model=List[ReviewCycleResponse])
def list_cycles(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return ReviewCycleService(db).list()


@router.get("/active", response_model=Optional[ReviewCycleResponse])
def get_active_cycle(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return ReviewCycleService(db).get_active()


@router.get("/{cycle_id}", response_model=ReviewCycleResponse)
def get_cycle(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return ReviewCycleService(db).get(cycle_id)


@router.post("/{cycle_id}/advance", response_model=ReviewCycleResponse)
def advance_cycle(
    cycle_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ReviewCycleService(db, clock).advance(cycle_id, actor)
