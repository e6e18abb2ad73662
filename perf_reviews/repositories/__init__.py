from .base import BaseRepository, CycleScopedRepository
from .users import UserRepository
from .review_cycles import ReviewCycleRepository
from .reviews import (
    SelfReviewRepository,
    PeerNominationRepository,
    NominationRoundRepository,
    PeerFeedbackRepository,
    ManagerEvaluationRepository,
)
from .calibration import CalibrationSessionRepository, CalibrationAdjustmentLog
from .scores import FinalScoreRepository, ScoreAdjustmentRequestRepository

__all__ = [
    "BaseRepository",
    "CycleScopedRepository",
    "UserRepository",
    "ReviewCycleRepository",
    "SelfReviewRepository",
    "PeerNominationRepository",
    "NominationRoundRepository",
    "PeerFeedbackRepository",
    "ManagerEvaluationRepository",
    "CalibrationSessionRepository",
    "CalibrationAdjustmentLog",
    "FinalScoreRepository",
    "ScoreAdjustmentRequestRepository",
]
