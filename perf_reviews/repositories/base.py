"""
Repository base: per-entity create/read/update/delete over a SQLAlchemy session.

Repositories never commit. The calling service owns the unit of work and
commits or rolls back once per public operation.
"""
from typing import Generic, List, Optional, Type, TypeVar
from sqlalchemy.orm import Session

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(self.model)

    def find_by_id(self, entity_id: str, for_update: bool = False) -> Optional[ModelT]:
        query = self._query().filter(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def save(self, entity: ModelT) -> ModelT:
        """Insert-or-update; flushes so generated ids and version checks apply now."""
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class CycleScopedRepository(BaseRepository[ModelT]):
    """Repository for entities that carry a ``cycle_id``."""

    def find_by_cycle(self, cycle_id: str) -> List[ModelT]:
        return self._query().filter(self.model.cycle_id == cycle_id).all()
