from typing import Iterable, List, Optional

from perf_reviews.models.final_score import FinalScore
from perf_reviews.models.score_adjustment import ScoreAdjustmentRequest, AdjustmentRequestStatus
from perf_reviews.repositories.base import BaseRepository, CycleScopedRepository


class FinalScoreRepository(CycleScopedRepository[FinalScore]):
    model = FinalScore

    def find_by_employee(self, employee_id: str) -> List[FinalScore]:
        return self._query().filter(FinalScore.employee_id == employee_id).all()

    def find_by_employee_and_cycle(self, employee_id: str, cycle_id: str, for_update: bool = False) -> Optional[FinalScore]:
        query = self._query().filter(FinalScore.employee_id == employee_id, FinalScore.cycle_id == cycle_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_by_employees_and_cycle(self, employee_ids: Iterable[str], cycle_id: str) -> List[FinalScore]:
        ids = list(employee_ids)
        if not ids:
            return []
        return (
            self._query()
            .filter(FinalScore.employee_id.in_(ids), FinalScore.cycle_id == cycle_id)
            .order_by(FinalScore.employee_id)
            .all()
        )


class ScoreAdjustmentRequestRepository(BaseRepository[ScoreAdjustmentRequest]):
    model = ScoreAdjustmentRequest

    def find_by_final_score(self, final_score_id: str) -> List[ScoreAdjustmentRequest]:
        return (
            self._query()
            .filter(ScoreAdjustmentRequest.final_score_id == final_score_id)
            .order_by(ScoreAdjustmentRequest.requested_at)
            .all()
        )

    def find_pending_for_final_score(self, final_score_id: str) -> Optional[ScoreAdjustmentRequest]:
        return (
            self._query()
            .filter(
                ScoreAdjustmentRequest.final_score_id == final_score_id,
                ScoreAdjustmentRequest.status == AdjustmentRequestStatus.PENDING,
            )
            .first()
        )

    def find_by_status(self, status: AdjustmentRequestStatus) -> List[ScoreAdjustmentRequest]:
        return self._query().filter(ScoreAdjustmentRequest.status == status).all()
