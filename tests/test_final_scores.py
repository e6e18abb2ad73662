from decimal import Decimal

import pytest

from perf_reviews.core.clock import as_utc
from perf_reviews.core.exceptions import (
    FinalScoreLocked,
    FinalScoreNotFound,
    InvalidStateTransition,
    ManagerEvaluationNotFound,
    Unauthorized,
)
from perf_reviews.models.audit_log import AuditLog
from perf_reviews.models.final_score import BonusTier
from perf_reviews.schemas.scores import DraftPillarScores, PILLARS
from perf_reviews.services.final_scores import FinalScoreService
from perf_reviews.services.manager_evaluations import ManagerEvaluationService


def _scores(*values):
    return dict(zip(PILLARS, values))


@pytest.fixture
def service(db_session, clock):
    return FinalScoreService(db_session, clock)


@pytest.fixture
def evaluated(db_session, clock, cycle, actors):
    managers = ManagerEvaluationService(db_session, clock)
    managers.submit(cycle.id, "emp-1", "mgr-1", _scores(3, 3, 4, 3, 3), "Narrative", actors["mgr-1"])
    managers.submit(cycle.id, "emp-2", "mgr-1", _scores(1, 2, 2, 1, 2), "Narrative", actors["mgr-1"])
    managers.save_draft(cycle.id, "emp-3", "mgr-1", actors["mgr-1"], scores=DraftPillarScores(direction=3))
    return cycle


def test_compute_from_submitted_evaluation(service, evaluated, actors):
    final = service.compute(evaluated.id, "emp-1", actors["hr-1"])
    assert final.weighted_score == Decimal("3.2")
    assert final.percentage_score == Decimal("80.0")
    assert final.bonus_tier == BonusTier.MEETS
    assert not final.is_locked


def test_compute_is_an_upsert(service, evaluated, actors):
    first = service.compute(evaluated.id, "emp-1", actors["hr-1"])
    second = service.compute(evaluated.id, "emp-1", actors["admin-1"])
    assert first.id == second.id


def test_compute_requires_submitted_evaluation(service, evaluated, actors):
    with pytest.raises(InvalidStateTransition):
        service.compute(evaluated.id, "emp-3", actors["hr-1"])
    with pytest.raises(ManagerEvaluationNotFound):
        service.compute(evaluated.id, "emp-4", actors["hr-1"])


def test_compute_requires_elevated_role(service, evaluated, actors):
    with pytest.raises(Unauthorized):
        service.compute(evaluated.id, "emp-1", actors["mgr-1"])


def test_deliver_locks_and_blocks_recompute(service, evaluated, actors, db_session, now):
    final = service.compute(evaluated.id, "emp-1", actors["hr-1"])
    delivered = service.deliver(final.id, "Great half, keep going.", actors["mgr-1"])
    assert delivered.is_locked
    assert delivered.delivered_by == "mgr-1"
    assert as_utc(delivered.delivered_at) == now

    with pytest.raises(FinalScoreLocked):
        service.compute(evaluated.id, "emp-1", actors["hr-1"])
    with pytest.raises(FinalScoreLocked):
        service.deliver(final.id, "Again", actors["mgr-1"])

    entry = db_session.query(AuditLog).filter(AuditLog.action == "final_score_delivered").one()
    assert entry.entity_id == final.id
    assert entry.after_state["is_locked"] is True


def test_only_direct_manager_or_elevated_delivers(service, evaluated, actors):
    final = service.compute(evaluated.id, "emp-1", actors["hr-1"])
    with pytest.raises(Unauthorized):
        service.deliver(final.id, "Notes", actors["mgr-2"])
    with pytest.raises(Unauthorized):
        service.deliver(final.id, "Notes", actors["emp-1"])
    assert service.deliver(final.id, "Notes", actors["hr-1"]).is_locked


def test_compute_cycle_skips_locked_and_drafts(service, evaluated, actors):
    first = service.compute(evaluated.id, "emp-1", actors["hr-1"])
    service.deliver(first.id, "Notes", actors["mgr-1"])

    computed = service.compute_cycle(evaluated.id, actors["hr-1"])
    assert [f.employee_id for f in computed] == ["emp-2"]
    assert computed[0].bonus_tier == BonusTier.BELOW


def test_reads(service, evaluated, actors):
    service.compute_cycle(evaluated.id, actors["hr-1"])

    mine = service.get_my_final_score(evaluated.id, actors["emp-2"])
    assert mine.employee_id == "emp-2"
    team = service.get_team_final_scores(evaluated.id, "mgr-1", actors["mgr-1"])
    assert [f.employee_id for f in team] == ["emp-1", "emp-2"]

    assert service.get_final_score(mine.id, actors["mgr-1"]).id == mine.id
    with pytest.raises(Unauthorized):
        service.get_final_score(mine.id, actors["emp-1"])
    with pytest.raises(FinalScoreNotFound):
        service.get_my_final_score(evaluated.id, actors["emp-3"])
