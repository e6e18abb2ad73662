from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from perf_reviews.core.clock import Clock
from perf_reviews.dependencies import get_db, get_current_actor, get_clock
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.peer_feedback import (
    NominationCreate,
    NominationRespond,
    NominationResponse,
    PeerFeedbackAggregate,
    PeerFeedbackReceipt,
    PeerFeedbackSubmit,
)
from perf_reviews.services.peer_feedback import PeerFeedbackService

router = APIRouter(prefix="/peer-feedback", tags=["peer-feedback"])


@router.post("/{cycle_id}/nominations", response_model=List[NominationResponse], status_code=status.HTTP_201_CREATED)
def nominate_peers(
    cycle_id: str,
    payload: NominationCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return PeerFeedbackService(db, clock).nominate(cycle_id, actor.user_id, payload.nominee_ids, actor)


@router.get("/{cycle_id}/nominations", response_model=List[NominationResponse])
def my_nominations(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return PeerFeedbackService(db).my_nominations(cycle_id, actor)


@router.get("/{cycle_id}/requests", response_model=List[NominationResponse])
def feedback_requests(cycle_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return PeerFeedbackService(db).feedback_requests(cycle_id, actor)


@router.post("/nominations/{nomination_id}/respond", response_model=NominationResponse)
def respond_to_nomination(
    nomination_id: str,
    payload: NominationRespond,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return PeerFeedbackService(db, clock).respond(nomination_id, payload.accept, actor)


@router.post(
    "/nominations/{nomination_id}/feedback",
    response_model=PeerFeedbackReceipt,
    status_code=status.HTTP_201_CREATED,
)
def submit_peer_feedback(
    nomination_id: str,
    payload: PeerFeedbackSubmit,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_current_actor),
):
    return PeerFeedbackService(db, clock).submit_feedback(
        nomination_id,
        payload.scores,
        actor,
        strengths=payload.strengths,
        growth_areas=payload.growth_areas,
        general_comments=payload.general_comments,
    )


@router.get("/{cycle_id}/reviewees/{reviewee_id}", response_model=PeerFeedbackAggregate)
def aggregate_peer_feedback(
    cycle_id: str,
    reviewee_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return PeerFeedbackService(db).aggregate(cycle_id, reviewee_id, actor)
