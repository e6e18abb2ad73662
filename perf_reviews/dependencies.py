"""
Re-exports of the request-scoped dependencies used by the routers.

The canonical definitions live in perf_reviews.routers.auth_deps and
perf_reviews.database.
"""
from perf_reviews.database import get_db
from perf_reviews.routers.auth_deps import get_current_actor, get_clock

__all__ = [
    "get_db",
    "get_current_actor",
    "get_clock",
]
