import pytest

from perf_reviews.core.exceptions import Unauthorized
from perf_reviews.repositories.users import UserRepository
from perf_reviews.services.authorization import (
    Action,
    AuthTarget,
    ReviewAuthorizationPolicy,
    authorize,
)


@pytest.fixture
def policy(db_session, users):
    return ReviewAuthorizationPolicy(UserRepository(db_session))


def test_elevated_roles_manage_cycles(policy, actors):
    assert policy.evaluate(actors["admin-1"], Action.MANAGE_CYCLE).allowed
    assert policy.evaluate(actors["hr-1"], Action.MANAGE_CYCLE).allowed
    decision = policy.evaluate(actors["mgr-1"], Action.MANAGE_CYCLE)
    assert not decision.allowed
    assert decision.reason == "missing_role"


def test_self_review_is_edited_only_by_its_owner(policy, actors):
    target = AuthTarget(subject_id="emp-1")
    assert policy.evaluate(actors["emp-1"], Action.EDIT_SELF_REVIEW, target).allowed
    for other in ("emp-2", "mgr-1", "admin-1"):
        decision = policy.evaluate(actors[other], Action.EDIT_SELF_REVIEW, target)
        assert not decision.allowed
        assert decision.reason == "not_self"


def test_direct_manager_is_resolved_through_hierarchy(policy, actors):
    target = AuthTarget(subject_id="emp-1")
    assert policy.evaluate(actors["mgr-1"], Action.VIEW_SELF_REVIEW, target).allowed
    assert not policy.evaluate(actors["mgr-2"], Action.VIEW_SELF_REVIEW, target).allowed
    assert policy.evaluate(actors["hr-1"], Action.VIEW_SELF_REVIEW, target).allowed


def test_manager_evaluation_requires_stated_and_current_manager(policy, actors):
    ok = AuthTarget(subject_id="emp-1", author_id="mgr-1")
    assert policy.evaluate(actors["mgr-1"], Action.AUTHOR_MANAGER_EVALUATION, ok).allowed

    # Acting for someone else
    decision = policy.evaluate(actors["mgr-2"], Action.AUTHOR_MANAGER_EVALUATION, ok)
    assert not decision.allowed
    assert decision.reason == "not_direct_manager"

    # Stated manager is not the employee's manager
    wrong = AuthTarget(subject_id="emp-4", author_id="mgr-1")
    assert not policy.evaluate(actors["mgr-1"], Action.AUTHOR_MANAGER_EVALUATION, wrong).allowed

    # Elevated roles do not author evaluations
    hr = AuthTarget(subject_id="emp-1", author_id="hr-1")
    assert not policy.evaluate(actors["hr-1"], Action.AUTHOR_MANAGER_EVALUATION, hr).allowed


def test_reorg_is_seen_immediately(policy, actors, users, db_session):
    target = AuthTarget(subject_id="emp-1")
    assert policy.evaluate(actors["mgr-1"], Action.DELIVER_FEEDBACK, target).allowed

    users["emp-1"].manager_id = "mgr-2"
    db_session.commit()

    assert not policy.evaluate(actors["mgr-1"], Action.DELIVER_FEEDBACK, target).allowed
    assert policy.evaluate(actors["mgr-2"], Action.DELIVER_FEEDBACK, target).allowed


def test_calibration_roles(policy, actors):
    target = AuthTarget(facilitator_id="mgr-2", participant_ids=("mgr-1",))
    assert policy.evaluate(actors["mgr-2"], Action.CALIBRATE, target).allowed
    assert policy.evaluate(actors["mgr-1"], Action.CALIBRATE, target).allowed
    assert policy.evaluate(actors["hr-1"], Action.CALIBRATE, target).allowed

    decision = policy.evaluate(actors["emp-1"], Action.CALIBRATE, target)
    assert not decision.allowed
    assert decision.reason == "not_facilitator"

    assert not policy.evaluate(actors["mgr-1"], Action.LOCK_CALIBRATION, target).allowed
    assert policy.evaluate(actors["mgr-2"], Action.LOCK_CALIBRATION, target).allowed


def test_nominee_only_actions(policy, actors):
    target = AuthTarget(nominee_id="emp-2")
    assert policy.evaluate(actors["emp-2"], Action.RESPOND_TO_NOMINATION, target).allowed
    assert not policy.evaluate(actors["admin-1"], Action.SUBMIT_PEER_FEEDBACK, target).allowed


def test_require_raises_with_reason(policy, actors):
    with pytest.raises(Unauthorized) as exc:
        policy.require(actors["emp-1"], Action.REVIEW_SCORE_ADJUSTMENT)
    assert exc.value.reason == "missing_role"
    assert exc.value.status_code == 403


def test_module_level_authorize(db_session, users, actors):
    decision = authorize(actors["emp-3"], Action.VIEW_FINAL_SCORE, AuthTarget(subject_id="emp-3"), UserRepository(db_session))
    assert decision.allowed
    assert decision.reason == "ok"
