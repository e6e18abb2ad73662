from fastapi import APIRouter
from perf_reviews.routers import (
    review_cycles, self_reviews, peer_feedback, manager_evaluations,
    calibration, final_scores, score_adjustments,
)

# Centralized API router hub; main.py only imports this one
api_router = APIRouter()

api_router.include_router(review_cycles.router, tags=["Review Cycles"])
api_router.include_router(self_reviews.router, tags=["Self Reviews"])
api_router.include_router(peer_feedback.router, tags=["Peer Feedback"])
api_router.include_router(manager_evaluations.router, tags=["Manager Evaluations"])
api_router.include_router(calibration.router, tags=["Calibration"])
api_router.include_router(final_scores.router, tags=["Final Scores"])
api_router.include_router(score_adjustments.router, tags=["Score Adjustments"])
