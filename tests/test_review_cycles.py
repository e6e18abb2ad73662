from datetime import timedelta

import pytest

from perf_reviews.core.clock import as_utc
from perf_reviews.core.exceptions import InvalidReviewCycleStatus, Unauthorized, ValidationError
from perf_reviews.models.audit_log import AuditLog
from perf_reviews.models.review_cycle import CycleStatus, DeadlinePhase
from perf_reviews.schemas.review_cycle import CycleDeadlines
from perf_reviews.services.review_cycles import ReviewCycleService

DEFAULT_OFFSETS = {
    "self_review": 7,
    "peer_feedback": 14,
    "manager_eval": 21,
    "calibration": 28,
    "feedback_delivery": 35,
}


def _deadlines(now, **day_offsets):
    offsets = {**DEFAULT_OFFSETS, **day_offsets}
    return CycleDeadlines(**{phase: now + timedelta(days=days) for phase, days in offsets.items()})


@pytest.fixture
def service(db_session, clock, users):
    return ReviewCycleService(db_session, clock)


def test_create_returns_draft_cycle(service, actors, now):
    cycle = service.create("FY25 H1", 2025, _deadlines(now), now, actors["hr-1"])
    assert cycle.status == CycleStatus.DRAFT
    assert cycle.deadline_for(DeadlinePhase.CALIBRATION) == now + timedelta(days=28)
    assert service.get(cycle.id).name == "FY25 H1"


@pytest.mark.parametrize("day_offsets", [
    {"peer_feedback": 7},
    {"manager_eval": 10},
    {"feedback_delivery": 0},
])
def test_create_rejects_unordered_deadlines(service, actors, now, day_offsets):
    with pytest.raises(ValidationError):
        service.create("Broken", 2025, _deadlines(now, **day_offsets), now, actors["hr-1"])
    assert service.list() == []


def test_create_requires_elevated_role(service, actors, now):
    with pytest.raises(Unauthorized):
        service.create("FY25 H1", 2025, _deadlines(now), now, actors["mgr-1"])


def test_advance_walks_forward_one_step_at_a_time(service, actors, db_session, now):
    cycle = service.create("FY25 H1", 2025, _deadlines(now), now, actors["admin-1"])
    seen = []
    for _ in range(4):
        seen.append(service.advance(cycle.id, actors["admin-1"]).status)
    assert seen == [CycleStatus.ACTIVE, CycleStatus.CALIBRATING, CycleStatus.COMPLETED, CycleStatus.CLOSED]
    assert as_utc(service.get(cycle.id).end_date) == now

    with pytest.raises(InvalidReviewCycleStatus):
        service.advance(cycle.id, actors["admin-1"])
    assert service.get(cycle.id).status == CycleStatus.CLOSED

    advanced = db_session.query(AuditLog).filter(AuditLog.action == "review_cycle_advanced").count()
    assert advanced == 4


def test_advance_requires_elevated_role(service, actors, cycle):
    with pytest.raises(Unauthorized):
        service.advance(cycle.id, actors["mgr-1"])
    assert service.get(cycle.id).status == CycleStatus.ACTIVE


def test_advance_unknown_cycle(service, actors):
    with pytest.raises(InvalidReviewCycleStatus):
        service.advance("missing", actors["hr-1"])


def test_get_active(service, cycle):
    assert service.get_active().id == cycle.id
