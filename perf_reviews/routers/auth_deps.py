"""
Identity dependencies.

The upstream gateway verifies the caller and forwards identity headers; this
module only turns them into an Actor. No token handling happens here.
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from perf_reviews.core.clock import Clock, utcnow
from perf_reviews.core.config import settings
from perf_reviews.schemas.actor import Actor

logger = logging.getLogger(__name__)


def get_current_actor(
    x_user_id: Optional[str] = Header(None, alias=settings.user_id_header),
    x_user_email: Optional[str] = Header(None, alias=settings.user_email_header),
    x_user_name: Optional[str] = Header(None, alias=settings.user_name_header),
    x_user_roles: Optional[str] = Header(None, alias=settings.user_roles_header),
) -> Actor:
    if not x_user_id:
        logger.warning("Request rejected: missing identity header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    roles = [r.strip().lower() for r in (x_user_roles or "").split(",") if r.strip()]
    return Actor(user_id=x_user_id, email=x_user_email, name=x_user_name, roles=roles)


def get_clock() -> Clock:
    return utcnow
