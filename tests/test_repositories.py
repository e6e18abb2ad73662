import pytest

from perf_reviews.repositories import (
    CalibrationSessionRepository,
    CycleScopedRepository,
    FinalScoreRepository,
    ManagerEvaluationRepository,
    PeerFeedbackRepository,
    PeerNominationRepository,
    ReviewCycleRepository,
    SelfReviewRepository,
    UserRepository,
)
from perf_reviews.schemas.scores import PILLARS
from perf_reviews.services.manager_evaluations import ManagerEvaluationService


@pytest.mark.parametrize("repository", [UserRepository, ReviewCycleRepository])
def test_unscoped_repositories_have_no_cycle_lookup(repository):
    assert not issubclass(repository, CycleScopedRepository)
    assert not hasattr(repository, "find_by_cycle")


@pytest.mark.parametrize("repository", [
    SelfReviewRepository,
    PeerNominationRepository,
    PeerFeedbackRepository,
    ManagerEvaluationRepository,
    CalibrationSessionRepository,
    FinalScoreRepository,
])
def test_cycle_scoped_repositories(repository):
    assert issubclass(repository, CycleScopedRepository)


def test_find_by_cycle_filters_on_cycle(db_session, clock, cycle_factory, actors):
    current = cycle_factory(name="FY25 H1")
    other = cycle_factory(name="FY24 H2")
    scores = dict(zip(PILLARS, (3, 3, 3, 3, 3)))
    service = ManagerEvaluationService(db_session, clock)
    service.submit(current.id, "emp-1", "mgr-1", scores, "Narrative", actors["mgr-1"])
    service.submit(other.id, "emp-2", "mgr-1", scores, "Narrative", actors["mgr-1"])

    found = ManagerEvaluationRepository(db_session).find_by_cycle(current.id)
    assert [e.employee_id for e in found] == ["emp-1"]
