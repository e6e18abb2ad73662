import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from perf_reviews.models.audit_log import AuditLog
from perf_reviews.services.base import BaseService


def _sanitize(obj: Any) -> Any:
    """Make nested pydantic models, enums, decimals and datetimes JSON-storable."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        actor_id: Optional[str],
        details: Optional[dict] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> AuditLog:
        """
        Append an audit entry inside the caller's unit of work.

        Flushes but never commits, so the entry is written if and only if the
        audited change is.
        """
        db_log = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            details=_sanitize(details or {}),
            before_state=_sanitize(before_state),
            after_state=_sanitize(after_state),
            created_at=self.now(),
        )
        self.db.add(db_log)
        self.db.flush()
        return db_log

    def find_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id)
            .all()
        )
