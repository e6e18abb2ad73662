from typing import List, Optional

from perf_reviews.models.review_cycle import ReviewCycle, CycleStatus
from perf_reviews.repositories.base import BaseRepository


class ReviewCycleRepository(BaseRepository[ReviewCycle]):
    model = ReviewCycle

    def find_all(self) -> List[ReviewCycle]:
        return self._query().order_by(ReviewCycle.year.desc(), ReviewCycle.start_date.desc()).all()

    def find_by_year(self, year: int) -> List[ReviewCycle]:
        return self._query().filter(ReviewCycle.year == year).all()

    def find_active(self) -> Optional[ReviewCycle]:
        return (
            self._query()
            .filter(ReviewCycle.status == CycleStatus.ACTIVE)
            .order_by(ReviewCycle.start_date.desc())
            .first()
        )
