from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.self_review import SelfReviewDraft, SelfReviewResponse, SelfReviewSubmit
from perf_reviews.services.self_reviews import SelfReviewService

router = APIRouter(prefix="/self-reviews", tags=["self-reviews"])


@router.post("/{cycle_id}/submit", response_model=SelfReviewResponse)
def submit_self_review(
    cycle_id: str,
    payload: SelfReviewSubmit,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return SelfReviewService(db, clock).submit(cycle_id, actor.user_id, payload.scores, payload.narrative, actor)


@router.put("/{cycle_id}/draft", response_model=SelfReviewResponse)
def save_self_review_draft(
    cycle_id: str,
    payload: SelfReviewDraft,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return SelfReviewService(db, clock).save_draft(
        cycle_id, actor.user_id, actor, scores=payload.scores, narrative=payload.narrative
    )


@router.get("/{cycle_id}/me", response_model=SelfReviewResponse)
def get_my_self_review(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return SelfReviewService(db).get_my_self_review(cycle_id, actor)


@router.get("/{cycle_id}/users/{user_id}", response_model=SelfReviewResponse)
def get_self_review(
    cycle_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return SelfReviewService(db).get_self_review(cycle_id, user_id, actor)
