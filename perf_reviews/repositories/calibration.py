from typing import List

from perf_reviews.models.calibration import CalibrationSession, CalibrationAdjustment
from perf_reviews.repositories.base import CycleScopedRepository


class CalibrationSessionRepository(CycleScopedRepository[CalibrationSession]):
    model = CalibrationSession

    def find_by_facilitator(self, facilitator_id: str) -> List[CalibrationSession]:
        return self._query().filter(CalibrationSession.facilitator_id == facilitator_id).all()


class CalibrationAdjustmentLog:
    """
    Append-only log of calibration adjustments keyed by session id.

    Rows are only ever inserted; no update or delete is exposed.
    """

    def __init__(self, db):
        self.db = db

    def append(self, adjustment: CalibrationAdjustment) -> CalibrationAdjustment:
        self.db.add(adjustment)
        self.db.flush()
        return adjustment

    def find_by_session(self, session_id: str) -> List[CalibrationAdjustment]:
        return (
            self.db.query(CalibrationAdjustment)
            .filter(CalibrationAdjustment.session_id == session_id)
            .order_by(CalibrationAdjustment.sequence)
            .all()
        )

    def find_by_evaluation(self, manager_evaluation_id: str) -> List[CalibrationAdjustment]:
        return (
            self.db.query(CalibrationAdjustment)
            .filter(CalibrationAdjustment.manager_evaluation_id == manager_evaluation_id)
            .order_by(CalibrationAdjustment.sequence)
            .all()
        )
