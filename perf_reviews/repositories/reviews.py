from typing import List, Optional

from perf_reviews.models.self_review import SelfReview
from perf_reviews.models.peer_feedback import PeerNomination, PeerFeedback, NominationRound
from perf_reviews.models.manager_evaluation import ManagerEvaluation
from perf_reviews.repositories.base import BaseRepository, CycleScopedRepository


class SelfReviewRepository(CycleScopedRepository[SelfReview]):
    model = SelfReview

    def find_by_user(self, user_id: str) -> List[SelfReview]:
        return self._query().filter(SelfReview.user_id == user_id).all()

    def find_by_user_and_cycle(self, user_id: str, cycle_id: str, for_update: bool = False) -> Optional[SelfReview]:
        query = self._query().filter(SelfReview.user_id == user_id, SelfReview.cycle_id == cycle_id)
        if for_update:
            query = query.with_for_update()
        return query.first()


class PeerNominationRepository(CycleScopedRepository[PeerNomination]):
    model = PeerNomination

    def find_by_nominator_and_cycle(self, nominator_id: str, cycle_id: str, for_update: bool = False) -> List[PeerNomination]:
        query = self._query().filter(
            PeerNomination.nominator_id == nominator_id,
            PeerNomination.cycle_id == cycle_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.order_by(PeerNomination.nominated_at).all()

    def find_by_nominee_and_cycle(self, nominee_id: str, cycle_id: str) -> List[PeerNomination]:
        return (
            self._query()
            .filter(PeerNomination.nominee_id == nominee_id, PeerNomination.cycle_id == cycle_id)
            .order_by(PeerNomination.nominated_at)
            .all()
        )

    def save_all(self, nominations: List[PeerNomination]) -> List[PeerNomination]:
        self.db.add_all(nominations)
        self.db.flush()
        return nominations


class NominationRoundRepository(BaseRepository[NominationRound]):
    model = NominationRound

    def find_for_nominator(self, nominator_id: str, cycle_id: str, for_update: bool = False) -> Optional[NominationRound]:
        query = self._query().filter(
            NominationRound.nominator_id == nominator_id,
            NominationRound.cycle_id == cycle_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()


class PeerFeedbackRepository(CycleScopedRepository[PeerFeedback]):
    model = PeerFeedback

    def find_by_reviewee_and_cycle(self, reviewee_id: str, cycle_id: str) -> List[PeerFeedback]:
        return (
            self._query()
            .filter(PeerFeedback.reviewee_id == reviewee_id, PeerFeedback.cycle_id == cycle_id)
            .order_by(PeerFeedback.submitted_at)
            .all()
        )

    def find_by_nomination(self, nomination_id: str) -> Optional[PeerFeedback]:
        return self._query().filter(PeerFeedback.nomination_id == nomination_id).first()

    def count_for_reviewee(self, reviewee_id: str, cycle_id: str) -> int:
        return (
            self._query()
            .filter(PeerFeedback.reviewee_id == reviewee_id, PeerFeedback.cycle_id == cycle_id)
            .count()
        )


class ManagerEvaluationRepository(CycleScopedRepository[ManagerEvaluation]):
    model = ManagerEvaluation

    def find_by_employee(self, employee_id: str) -> List[ManagerEvaluation]:
        return self._query().filter(ManagerEvaluation.employee_id == employee_id).all()

    def find_by_employee_and_cycle(self, employee_id: str, cycle_id: str, for_update: bool = False) -> Optional[ManagerEvaluation]:
        query = self._query().filter(
            ManagerEvaluation.employee_id == employee_id,
            ManagerEvaluation.cycle_id == cycle_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_by_manager_and_cycle(self, manager_id: str, cycle_id: str) -> List[ManagerEvaluation]:
        return (
            self._query()
            .filter(ManagerEvaluation.manager_id == manager_id, ManagerEvaluation.cycle_id == cycle_id)
            .all()
        )
