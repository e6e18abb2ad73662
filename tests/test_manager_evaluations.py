import pytest

from perf_reviews.core.exceptions import (
    IncompleteReview,
    ManagerEvalDeadlinePassed,
    ManagerEvaluationNotFound,
    ReviewAlreadySubmitted,
    Unauthorized,
    ValidationError,
)
from perf_reviews.models.manager_evaluation import EvaluationStatus
from perf_reviews.models.user import EngineerLevel
from perf_reviews.schemas.scores import DraftPillarScores, PILLARS
from perf_reviews.services.manager_evaluations import ManagerEvaluationService
from perf_reviews.services.peer_feedback import PeerFeedbackService
from perf_reviews.services.self_reviews import SelfReviewService


def _scores(*values):
    return dict(zip(PILLARS, values))


@pytest.fixture
def service(db_session, clock):
    return ManagerEvaluationService(db_session, clock)


def _submit(service, cycle, actors, employee="emp-1", manager="mgr-1", values=(2, 2, 3, 3, 2)):
    return service.submit(
        cycle.id, employee, manager, _scores(*values), "Solid half.", actors[manager],
        growth_areas="Broaden on-call exposure", proposed_level=EngineerLevel.SENIOR,
    )


def test_submit_by_direct_manager(service, cycle, actors):
    evaluation = _submit(service, cycle, actors)
    assert evaluation.status == EvaluationStatus.SUBMITTED
    assert evaluation.manager_id == "mgr-1"
    assert evaluation.proposed_level == EngineerLevel.SENIOR
    assert evaluation.submitted_at is not None


def test_submit_rejects_non_manager(service, cycle, actors):
    with pytest.raises(Unauthorized):
        _submit(service, cycle, actors, employee="emp-4", manager="mgr-1")
    with pytest.raises(Unauthorized):
        service.submit(cycle.id, "emp-1", "mgr-1", _scores(3, 3, 3, 3, 3), "x", actors["mgr-2"])
    with pytest.raises(Unauthorized):
        service.submit(cycle.id, "emp-1", "hr-1", _scores(3, 3, 3, 3, 3), "x", actors["hr-1"])


def test_resubmit_fails(service, cycle, actors):
    _submit(service, cycle, actors)
    with pytest.raises(ReviewAlreadySubmitted):
        _submit(service, cycle, actors, values=(4, 4, 4, 4, 4))
    stored = service.get_evaluation(cycle.id, "emp-1", actors["mgr-1"])
    assert stored.scores.as_tuple() == (2, 2, 3, 3, 2)


def test_deadline(service, cycle, actors, clock):
    clock.advance(days=22)
    with pytest.raises(ManagerEvalDeadlinePassed):
        _submit(service, cycle, actors)


def test_validation(service, cycle, actors):
    with pytest.raises(ValidationError):
        _submit(service, cycle, actors, values=(2, 2, 9, 3, 2))
    with pytest.raises(IncompleteReview):
        service.submit(cycle.id, "emp-1", "mgr-1", {"direction": 3}, "Narrative", actors["mgr-1"])


def test_draft_then_submit(service, cycle, actors):
    draft = service.save_draft(
        cycle.id, "emp-2", "mgr-1", actors["mgr-1"], scores=DraftPillarScores(project_impact=4), narrative="Notes"
    )
    assert draft.status == EvaluationStatus.DRAFT
    submitted = _submit(service, cycle, actors, employee="emp-2")
    assert submitted.id == draft.id
    assert submitted.project_impact == 2


def test_manager_id_is_fixed_after_submission(service, cycle, actors, users, db_session):
    _submit(service, cycle, actors)
    users["emp-1"].manager_id = "mgr-2"
    db_session.commit()

    evaluation = service.get_evaluation(cycle.id, "emp-1", actors["mgr-1"])
    assert evaluation.manager_id == "mgr-1"
    # The new manager can read it as the employee's current manager
    assert service.get_evaluation(cycle.id, "emp-1", actors["mgr-2"]).id == evaluation.id


def test_get_evaluation_missing(service, cycle, actors):
    with pytest.raises(ManagerEvaluationNotFound):
        service.get_evaluation(cycle.id, "emp-3", actors["mgr-1"])


def test_employee_review_bundle(service, cycle, actors, db_session, clock):
    SelfReviewService(db_session, clock).submit(
        cycle.id, "emp-1", _scores(3, 3, 3, 3, 3), "My half", actors["emp-1"]
    )
    peers = PeerFeedbackService(db_session, clock)
    nomination = peers.nominate(cycle.id, "emp-1", ["emp-2", "emp-3", "emp-4"], actors["emp-1"])[0]
    peers.respond(nomination.id, True, actors["emp-2"])
    peers.submit_feedback(nomination.id, _scores(4, 4, 4, 4, 4), actors["emp-2"], strengths="Reliable")

    bundle = service.get_employee_review(cycle.id, "emp-1", actors["mgr-1"])
    assert bundle.self_review.narrative == "My half"
    assert bundle.peer_feedback.count == 1
    assert bundle.peer_feedback.comments is None
    assert bundle.manager_evaluation is None

    with pytest.raises(Unauthorized):
        service.get_employee_review(cycle.id, "emp-1", actors["emp-2"])


def test_team_progress(service, cycle, actors, db_session, clock):
    SelfReviewService(db_session, clock).submit(
        cycle.id, "emp-2", _scores(3, 3, 3, 3, 3), "Done", actors["emp-2"]
    )
    _submit(service, cycle, actors, employee="emp-3")

    team = {p.employee_id: p for p in service.get_team_reviews(cycle.id, "mgr-1", actors["mgr-1"])}
    assert set(team) == {"emp-1", "emp-2", "emp-3"}
    assert team["emp-1"].self_review_status is None
    assert team["emp-2"].self_review_status == "SUBMITTED"
    assert team["emp-3"].evaluation_status == "SUBMITTED"

    with pytest.raises(Unauthorized):
        service.get_team_reviews(cycle.id, "mgr-1", actors["mgr-2"])
