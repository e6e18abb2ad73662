from typing import Iterable, List, Optional

from perf_reviews.models.user import User
from perf_reviews.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    def find_by_ids(self, user_ids: Iterable[str]) -> List[User]:
        ids = list(user_ids)
        if not ids:
            return []
        return self._query().filter(User.id.in_(ids)).all()

    def find_by_email(self, email: str) -> Optional[User]:
        return self._query().filter(User.email == email).first()

    def find_direct_reports(self, manager_id: str) -> List[User]:
        return self._query().filter(User.manager_id == manager_id).order_by(User.id).all()

    def find_by_department(self, department: str) -> List[User]:
        return self._query().filter(User.department == department).all()

    def is_direct_manager(self, manager_id: str, employee_id: str) -> bool:
        employee = self.find_by_id(employee_id)
        return employee is not None and employee.manager_id is not None and employee.manager_id == manager_id
