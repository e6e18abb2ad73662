"""
Review Authorization Policy

One explicit policy consulted identically by every workflow. Given an actor,
an action and the target's owning ids it answers allow/deny with a reason
code. Hierarchy ("is direct manager of") is resolved through the user
repository at call time; nothing is cached.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from perf_reviews.core.exceptions import Unauthorized
from perf_reviews.repositories.users import UserRepository
from perf_reviews.schemas.actor import Actor

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    MANAGE_CYCLE = "manage_cycle"
    EDIT_SELF_REVIEW = "edit_self_review"
    VIEW_SELF_REVIEW = "view_self_review"
    NOMINATE_PEERS = "nominate_peers"
    RESPOND_TO_NOMINATION = "respond_to_nomination"
    SUBMIT_PEER_FEEDBACK = "submit_peer_feedback"
    VIEW_PEER_FEEDBACK = "view_peer_feedback"
    AUTHOR_MANAGER_EVALUATION = "author_manager_evaluation"
    VIEW_MANAGER_EVALUATION = "view_manager_evaluation"
    VIEW_TEAM = "view_team"
    CREATE_CALIBRATION_SESSION = "create_calibration_session"
    CALIBRATE = "calibrate"
    LOCK_CALIBRATION = "lock_calibration"
    VIEW_CALIBRATION = "view_calibration"
    COMPUTE_FINAL_SCORE = "compute_final_score"
    DELIVER_FEEDBACK = "deliver_feedback"
    VIEW_FINAL_SCORE = "view_final_score"
    REQUEST_SCORE_ADJUSTMENT = "request_score_adjustment"
    REVIEW_SCORE_ADJUSTMENT = "review_score_adjustment"


class Relationship(str, enum.Enum):
    ELEVATED = "elevated"
    SELF = "self"
    DIRECT_MANAGER = "direct_manager"
    AUTHOR = "author"
    AUTHOR_IS_DIRECT_MANAGER = "author_is_direct_manager"
    NOMINEE = "nominee"
    FACILITATOR = "facilitator"
    PARTICIPANT = "participant"


# Reason code reported when a relationship does not hold
DENY_REASONS: Dict[Relationship, str] = {
    Relationship.ELEVATED: "missing_role",
    Relationship.SELF: "not_self",
    Relationship.DIRECT_MANAGER: "not_direct_manager",
    Relationship.AUTHOR: "not_author",
    Relationship.AUTHOR_IS_DIRECT_MANAGER: "not_direct_manager",
    Relationship.NOMINEE: "not_nominee",
    Relationship.FACILITATOR: "not_facilitator",
    Relationship.PARTICIPANT: "not_participant",
}

# Any one listed relationship is sufficient
RULES: Dict[Action, Tuple[Relationship, ...]] = {
    Action.MANAGE_CYCLE: (Relationship.ELEVATED,),
    Action.EDIT_SELF_REVIEW: (Relationship.SELF,),
    Action.VIEW_SELF_REVIEW: (Relationship.SELF, Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.NOMINATE_PEERS: (Relationship.SELF,),
    Action.RESPOND_TO_NOMINATION: (Relationship.NOMINEE,),
    Action.SUBMIT_PEER_FEEDBACK: (Relationship.NOMINEE,),
    Action.VIEW_PEER_FEEDBACK: (Relationship.SELF, Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.AUTHOR_MANAGER_EVALUATION: (Relationship.AUTHOR_IS_DIRECT_MANAGER,),
    Action.VIEW_MANAGER_EVALUATION: (Relationship.AUTHOR, Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.VIEW_TEAM: (Relationship.SELF, Relationship.ELEVATED),
    Action.CREATE_CALIBRATION_SESSION: (Relationship.ELEVATED,),
    Action.CALIBRATE: (Relationship.FACILITATOR, Relationship.PARTICIPANT, Relationship.ELEVATED),
    Action.LOCK_CALIBRATION: (Relationship.FACILITATOR, Relationship.ELEVATED),
    Action.VIEW_CALIBRATION: (Relationship.FACILITATOR, Relationship.PARTICIPANT, Relationship.ELEVATED),
    Action.COMPUTE_FINAL_SCORE: (Relationship.ELEVATED,),
    Action.DELIVER_FEEDBACK: (Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.VIEW_FINAL_SCORE: (Relationship.SELF, Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.REQUEST_SCORE_ADJUSTMENT: (Relationship.DIRECT_MANAGER, Relationship.ELEVATED),
    Action.REVIEW_SCORE_ADJUSTMENT: (Relationship.ELEVATED,),
}


@dataclass(frozen=True)
class AuthTarget:
    """Owning ids of the entity an action touches."""
    subject_id: Optional[str] = None
    author_id: Optional[str] = None
    nominee_id: Optional[str] = None
    facilitator_id: Optional[str] = None
    participant_ids: Sequence[str] = ()


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str = "ok"


class ReviewAuthorizationPolicy:
    def __init__(self, users: UserRepository):
        self.users = users

    def evaluate(self, actor: Actor, action: Action, target: AuthTarget = AuthTarget()) -> AuthorizationDecision:
        relationships = RULES[action]
        for relationship in relationships:
            if self._holds(relationship, actor, target):
                return AuthorizationDecision(allowed=True)
        return AuthorizationDecision(allowed=False, reason=DENY_REASONS[relationships[0]])

    def require(self, actor: Actor, action: Action, target: AuthTarget = AuthTarget()) -> None:
        decision = self.evaluate(actor, action, target)
        if not decision.allowed:
            logger.warning(
                f"Denied {action.value} for user {actor.user_id}: {decision.reason}",
                extra={"action": action.value, "reason": decision.reason},
            )
            raise Unauthorized(f"Not allowed to {action.value.replace('_', ' ')}", reason=decision.reason)

    def _holds(self, relationship: Relationship, actor: Actor, target: AuthTarget) -> bool:
        if relationship == Relationship.ELEVATED:
            return actor.is_elevated
        if relationship == Relationship.SELF:
            return target.subject_id is not None and actor.user_id == target.subject_id
        if relationship == Relationship.DIRECT_MANAGER:
            return target.subject_id is not None and self.users.is_direct_manager(actor.user_id, target.subject_id)
        if relationship == Relationship.AUTHOR:
            return target.author_id is not None and actor.user_id == target.author_id
        if relationship == Relationship.AUTHOR_IS_DIRECT_MANAGER:
            return (
                target.author_id is not None
                and actor.user_id == target.author_id
                and target.subject_id is not None
                and self.users.is_direct_manager(target.author_id, target.subject_id)
            )
        if relationship == Relationship.NOMINEE:
            return target.nominee_id is not None and actor.user_id == target.nominee_id
        if relationship == Relationship.FACILITATOR:
            return target.facilitator_id is not None and actor.user_id == target.facilitator_id
        if relationship == Relationship.PARTICIPANT:
            return actor.user_id in (target.participant_ids or ())
        return False


def authorize(actor: Actor, action: Action, target: AuthTarget, users: UserRepository) -> AuthorizationDecision:
    return ReviewAuthorizationPolicy(users).evaluate(actor, action, target)


def require(actor: Actor, action: Action, target: AuthTarget, users: UserRepository) -> None:
    ReviewAuthorizationPolicy(users).require(actor, action, target)
