# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, review_cycle, self_review, peer_feedback, manager_evaluation,
    calibration, final_score, score_adjustment, audit_log
)

# Explicit class exports for cleaner imports
from .user import User, UserRole, EngineerLevel
from .review_cycle import ReviewCycle, CycleStatus, DeadlinePhase
from .self_review import SelfReview, ReviewStatus
from .peer_feedback import PeerNomination, PeerFeedback, NominationRound, NominationStatus
from .manager_evaluation import ManagerEvaluation, EvaluationStatus
from .calibration import CalibrationSession, CalibrationAdjustment, CalibrationStatus
from .final_score import FinalScore, BonusTier
from .score_adjustment import ScoreAdjustmentRequest, AdjustmentRequestStatus
from .audit_log import AuditLog

__all__ = [
    "User", "UserRole", "EngineerLevel",
    "ReviewCycle", "CycleStatus", "DeadlinePhase",
    "SelfReview", "ReviewStatus",
    "PeerNomination", "PeerFeedback", "NominationRound", "NominationStatus",
    "ManagerEvaluation", "EvaluationStatus",
    "CalibrationSession", "CalibrationAdjustment", "CalibrationStatus",
    "FinalScore", "BonusTier",
    "ScoreAdjustmentRequest", "AdjustmentRequestStatus",
    "AuditLog",
]
