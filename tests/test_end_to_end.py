"""One employee carried through a whole review cycle at the service layer."""
from datetime import timedelta
from decimal import Decimal

from perf_reviews.models.audit_log import AuditLog
from perf_reviews.models.calibration import CalibrationStatus
from perf_reviews.models.final_score import BonusTier
from perf_reviews.models.manager_evaluation import EvaluationStatus
from perf_reviews.models.score_adjustment import AdjustmentRequestStatus
from perf_reviews.schemas.scores import PILLARS
from perf_reviews.services.calibration import CalibrationService
from perf_reviews.services.final_scores import FinalScoreService
from perf_reviews.services.manager_evaluations import ManagerEvaluationService
from perf_reviews.services.peer_feedback import PeerFeedbackService
from perf_reviews.services.score_adjustments import ScoreAdjustmentService
from perf_reviews.services.self_reviews import SelfReviewService


def _scores(*values):
    return dict(zip(PILLARS, values))


def test_full_review_cycle(db_session, clock, cycle, actors, now):
    SelfReviewService(db_session, clock).submit(
        cycle.id, "emp-1", _scores(3, 3, 3, 3, 3), "Shipped the billing migration.", actors["emp-1"]
    )

    peers = PeerFeedbackService(db_session, clock)
    nominations = peers.nominate(cycle.id, "emp-1", ["emp-2", "emp-3", "emp-4"], actors["emp-1"])
    for nomination in nominations:
        reviewer = actors[nomination.nominee_id]
        peers.respond(nomination.id, True, reviewer)
        peers.submit_feedback(
            nomination.id, _scores(3, 2, 3, 3, 2), reviewer, strengths=f"Noted by {reviewer.user_id}"
        )
    aggregate = peers.aggregate(cycle.id, "emp-1", actors["mgr-1"])
    assert aggregate.count == 3
    assert not aggregate.comments_withheld

    managers = ManagerEvaluationService(db_session, clock)
    evaluation = managers.submit(
        cycle.id, "emp-1", "mgr-1", _scores(2, 2, 3, 3, 2), "Solid half with room to grow.", actors["mgr-1"]
    )
    assert evaluation.status == EvaluationStatus.SUBMITTED

    calibration = CalibrationService(db_session, clock)
    session = calibration.create_session(
        cycle.id, "Engineering calibration", "mgr-2", ["mgr-1"], now + timedelta(days=22), actors["hr-1"],
        department="Engineering",
    )
    calibration.apply_adjustment(
        session.id, evaluation.id, _scores(3, 3, 3, 3, 3),
        "Cross-team work was under-weighted in the first pass.", actors["mgr-2"],
    )
    locked = calibration.lock(session.id, actors["mgr-2"])
    assert locked.status == CalibrationStatus.COMPLETED

    finals = FinalScoreService(db_session, clock)
    final = finals.compute(cycle.id, "emp-1", actors["hr-1"])
    assert final.weighted_score == Decimal("3.0")
    assert final.percentage_score == Decimal("75.0")
    assert final.bonus_tier == BonusTier.MEETS

    clock.advance(days=30)
    final = finals.deliver(final.id, "Good half. Keep pushing on direction.", actors["mgr-1"])
    assert final.is_locked

    adjustments = ScoreAdjustmentService(db_session, clock)
    request = adjustments.request(
        final.id, _scores(4, 4, 4, 4, 4), "Late-arriving launch results.", actors["mgr-1"]
    )
    reviewed = adjustments.review(request.id, True, actors["admin-1"], "Results verified")
    assert reviewed.status == AdjustmentRequestStatus.APPROVED

    db_session.refresh(final)
    assert final.weighted_score == Decimal("4.0")
    assert final.percentage_score == Decimal("100.0")
    assert final.bonus_tier == BonusTier.EXCEEDS
    assert final.is_locked

    actions = [row.action for row in db_session.query(AuditLog).order_by(AuditLog.id)]
    assert "final_score_delivered" in actions
    assert "score_adjustment_approved" in actions
