import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from perf_reviews.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # Sessions are handed across threads by the ASGI worker pool
        return create_engine(url, echo=settings.database_echo, connect_args={"check_same_thread": False})
    return create_engine(url, echo=settings.database_echo, pool_pre_ping=True)


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    One session per request. Services own commit and rollback through
    their unit of work; this only guarantees the session is closed.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create any missing review tables. Called from the app lifespan."""
    import perf_reviews.models  # noqa: F401  registers every table on Base.metadata
    Base.metadata.create_all(bind=engine)
    logger.info(f"Schema ready ({len(Base.metadata.tables)} tables)")
