"""
Typed failures raised by the review workflows.

Every failure carries an ``ErrorKind`` so the boundary layer can translate it
into a transport response without knowing the concrete class.
"""
import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    DEADLINE_PASSED = "DEADLINE_PASSED"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"
    VALIDATION = "VALIDATION"
    INCOMPLETE_REVIEW = "INCOMPLETE_REVIEW"


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.DEADLINE_PASSED: 409,
    ErrorKind.INVALID_STATE_TRANSITION: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INCOMPLETE_REVIEW: 422,
}


class AppException(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    default_message: str = "Request could not be processed"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.status_code = _STATUS_BY_KIND[self.kind]
        self.error_code = error_code or _code_for(type(self).__name__)
        self.details = details
        super().__init__(self.message)


def _code_for(class_name: str) -> str:
    out = []
    for i, ch in enumerate(class_name):
        if ch.isupper() and i and not class_name[i - 1].isupper():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)


# --- NotFound ---------------------------------------------------------------

class NotFoundError(AppException):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ReviewCycleNotFound(NotFoundError):
    default_message = "Review cycle not found"


class SelfReviewNotFound(NotFoundError):
    default_message = "Self review not found"


class NominationNotFound(NotFoundError):
    default_message = "Peer nomination not found"


class ManagerEvaluationNotFound(NotFoundError):
    default_message = "Manager evaluation not found"


class CalibrationSessionNotFound(NotFoundError):
    default_message = "Calibration session not found"


class FinalScoreNotFound(NotFoundError):
    default_message = "Final score not found"


class ScoreAdjustmentRequestNotFound(NotFoundError):
    default_message = "Score adjustment request not found"


class UserNotFound(NotFoundError):
    default_message = "User not found"


# --- Unauthorized -----------------------------------------------------------

class Unauthorized(AppException):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Insufficient permissions"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message, details={"reason": reason} if reason else None)
        self.reason = reason


# --- DeadlinePassed ---------------------------------------------------------

class DeadlinePassed(AppException):
    kind = ErrorKind.DEADLINE_PASSED
    default_message = "Deadline has passed"


class SelfReviewDeadlinePassed(DeadlinePassed):
    default_message = "Self-review deadline has passed"


class PeerFeedbackDeadlinePassed(DeadlinePassed):
    default_message = "Peer feedback deadline has passed"


class ManagerEvalDeadlinePassed(DeadlinePassed):
    default_message = "Manager evaluation deadline has passed"


class CalibrationDeadlinePassed(DeadlinePassed):
    default_message = "Calibration deadline has passed"


# --- InvalidStateTransition -------------------------------------------------

class InvalidStateTransition(AppException):
    kind = ErrorKind.INVALID_STATE_TRANSITION
    default_message = "Operation is not valid for the current status"


class InvalidReviewCycleStatus(InvalidStateTransition):
    default_message = "Invalid review cycle status transition"


class ReviewCycleNotOpen(InvalidStateTransition):
    default_message = "Review cycle is not open for this operation"


class ReviewAlreadySubmitted(InvalidStateTransition):
    default_message = "Review has already been submitted"


class CalibrationAlreadyLocked(InvalidStateTransition):
    default_message = "Calibration session is locked"


class FinalScoreLocked(InvalidStateTransition):
    default_message = "Final score is locked"


class FinalScoreNotLocked(InvalidStateTransition):
    default_message = "Final score must be locked before requesting an adjustment"


class PeerFeedbackAlreadySubmitted(InvalidStateTransition):
    default_message = "Peer feedback already submitted for this nomination"


class AdjustmentAlreadyPending(InvalidStateTransition):
    default_message = "A pending adjustment request already exists for this final score"


class ConcurrentModification(InvalidStateTransition):
    default_message = "The record was modified concurrently; reload and retry"


# --- Validation -------------------------------------------------------------

class ValidationError(AppException):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class InsufficientPeerNominations(ValidationError):
    default_message = "Must nominate between 3 and 5 peers"


class CannotNominateSelf(ValidationError):
    default_message = "Cannot nominate yourself for peer feedback"


class CannotNominateManager(ValidationError):
    default_message = "Cannot nominate your manager for peer feedback"


class DuplicateNomination(ValidationError):
    default_message = "Peer has already been nominated in this cycle"


class NarrativeTooLong(ValidationError):
    default_message = "Narrative exceeds the word limit"


# --- IncompleteReview -------------------------------------------------------

class IncompleteReview(AppException):
    kind = ErrorKind.INCOMPLETE_REVIEW
    default_message = "Review is missing required fields"
