from decimal import Decimal

import pytest

from perf_reviews.core.exceptions import (
    AdjustmentAlreadyPending,
    FinalScoreNotLocked,
    InvalidStateTransition,
    ScoreAdjustmentRequestNotFound,
    Unauthorized,
    ValidationError,
)
from perf_reviews.models.final_score import BonusTier
from perf_reviews.models.score_adjustment import AdjustmentRequestStatus
from perf_reviews.schemas.scores import PILLARS
from perf_reviews.services.final_scores import FinalScoreService
from perf_reviews.services.manager_evaluations import ManagerEvaluationService
from perf_reviews.services.score_adjustments import ScoreAdjustmentService

REASON = "Q2 launch impact was missed in calibration."


def _scores(*values):
    return dict(zip(PILLARS, values))


@pytest.fixture
def service(db_session, clock):
    return ScoreAdjustmentService(db_session, clock)


@pytest.fixture
def final_score(db_session, clock, cycle, actors):
    ManagerEvaluationService(db_session, clock).submit(
        cycle.id, "emp-1", "mgr-1", _scores(3, 3, 3, 3, 3), "Narrative", actors["mgr-1"]
    )
    return FinalScoreService(db_session, clock).compute(cycle.id, "emp-1", actors["hr-1"])


@pytest.fixture
def delivered(db_session, clock, final_score, actors):
    return FinalScoreService(db_session, clock).deliver(final_score.id, "Notes", actors["mgr-1"])


def test_request_requires_locked_score(service, final_score, actors):
    with pytest.raises(FinalScoreNotLocked):
        service.request(final_score.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])


def test_request_records_previous_and_requested(service, delivered, actors):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    assert request.status == AdjustmentRequestStatus.PENDING
    assert request.previous_score == Decimal("3.0")
    assert request.requested_score == Decimal("4.0")
    assert request.proposed_scores == _scores(4, 4, 4, 4, 4)


def test_request_validation(service, delivered, actors):
    with pytest.raises(ValidationError):
        service.request(delivered.id, _scores(4, 4, 4, 4, 4), "  ", actors["mgr-1"])
    with pytest.raises(ValidationError):
        service.request(delivered.id, _scores(4, 4, 4, 4, 8), REASON, actors["mgr-1"])
    with pytest.raises(Unauthorized):
        service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["emp-1"])


def test_single_pending_request(service, delivered, actors):
    service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    with pytest.raises(AdjustmentAlreadyPending):
        service.request(delivered.id, _scores(4, 4, 4, 4, 3), REASON, actors["hr-1"])


def test_approval_rewrites_and_relocks(service, delivered, actors, db_session):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    reviewed = service.review(request.id, True, actors["admin-1"], "Agreed")
    assert reviewed.status == AdjustmentRequestStatus.APPROVED
    assert reviewed.reviewed_by == "admin-1"

    db_session.refresh(delivered)
    assert delivered.weighted_score == Decimal("4.0")
    assert delivered.percentage_score == Decimal("100.0")
    assert delivered.bonus_tier == BonusTier.EXCEEDS
    assert delivered.is_locked

    # A locked score can be disputed again once nothing is pending
    assert service.request(delivered.id, _scores(3, 4, 4, 4, 4), REASON, actors["mgr-1"]).previous_score == Decimal("4.0")


def test_rejection_leaves_score_untouched(service, delivered, actors, db_session):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    with pytest.raises(ValidationError):
        service.review(request.id, False, actors["hr-1"])

    reviewed = service.review(request.id, False, actors["hr-1"], "Evidence does not support it")
    assert reviewed.status == AdjustmentRequestStatus.REJECTED
    db_session.refresh(delivered)
    assert delivered.weighted_score == Decimal("3.0")
    assert delivered.is_locked


def test_rereview_fails(service, delivered, actors):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    service.review(request.id, True, actors["hr-1"], "Fine")
    with pytest.raises(InvalidStateTransition):
        service.review(request.id, False, actors["hr-1"], "Changed my mind")


def test_review_requires_elevated_role(service, delivered, actors):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    with pytest.raises(Unauthorized):
        service.review(request.id, True, actors["mgr-1"], "Self-approval")
    with pytest.raises(ScoreAdjustmentRequestNotFound):
        service.review("missing", True, actors["hr-1"], "x")


def test_reads(service, delivered, actors):
    request = service.request(delivered.id, _scores(4, 4, 4, 4, 4), REASON, actors["mgr-1"])
    assert [r.id for r in service.list_pending(actors["hr-1"])] == [request.id]
    assert service.get_request(request.id, actors["mgr-1"]).id == request.id
    assert [r.id for r in service.list_for_final_score(delivered.id, actors["emp-1"])] == [request.id]
    with pytest.raises(Unauthorized):
        service.get_request(request.id, actors["emp-2"])
