from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.score_adjustment import (
    ScoreAdjustmentCreate,
    ScoreAdjustmentResponse,
    ScoreAdjustmentReview,
)
from perf_reviews.services.score_adjustments import ScoreAdjustmentService

router = APIRouter(prefix="/score-adjustments", tags=["score-adjustments"])


@router.post("", response_model=ScoreAdjustmentResponse, status_code=status.HTTP_201_CREATED)
def request_score_adjustment(
    payload: ScoreAdjustmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ScoreAdjustmentService(db, clock).request(
        payload.final_score_id, payload.proposed_scores, payload.reason, actor
    )


@router.get("/pending", response_model=List[ScoreAdjustmentResponse])
def list_pending_adjustments(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return ScoreAdjustmentService(db).list_pending(actor)


@router.get("/final-scores/{final_score_id}", response_model=List[ScoreAdjustmentResponse])
def list_adjustments_for_final_score(
    final_score_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return ScoreAdjustmentService(db).list_for_final_score(final_score_id, actor)


@router.get("/{request_id}", response_model=ScoreAdjustmentResponse)
def get_score_adjustment(request_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return ScoreAdjustmentService(db).get_request(request_id, actor)


@router.post("/{request_id}/review", response_model=ScoreAdjustmentResponse)
def review_score_adjustment(
    request_id: str,
    payload: ScoreAdjustmentReview,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return ScoreAdjustmentService(db, clock).review(request_id, payload.approve, actor, payload.review_notes)
