import os
import logging
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class ReviewPolicySettings(BaseModel):
    narrative_max_words: int = Field(default=int(os.getenv("NARRATIVE_MAX_WORDS", "1000")))
    peer_anonymity_threshold: int = Field(default=int(os.getenv("PEER_ANONYMITY_THRESHOLD", "3")))
    min_peer_nominations: int = Field(default=int(os.getenv("MIN_PEER_NOMINATIONS", "3")))
    max_peer_nominations: int = Field(default=int(os.getenv("MAX_PEER_NOMINATIONS", "5")))
    justification_min_length: int = Field(default=int(os.getenv("JUSTIFICATION_MIN_LENGTH", "20")))
    justification_max_length: int = Field(default=int(os.getenv("JUSTIFICATION_MAX_LENGTH", "2000")))


class Config(BaseModel):
    app_name: str = "Performance Review Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./reviews.db")
    database_echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Identity headers set by the upstream gateway
    user_id_header: str = "X-User-Id"
    user_email_header: str = "X-User-Email"
    user_name_header: str = "X-User-Name"
    user_roles_header: str = "X-User-Roles"

    review: ReviewPolicySettings = ReviewPolicySettings()


settings = Config()

_logger = logging.getLogger(__name__)
if settings.review.min_peer_nominations > settings.review.max_peer_nominations:
    raise RuntimeError(
        "FATAL: MIN_PEER_NOMINATIONS must not exceed MAX_PEER_NOMINATIONS "
        f"({settings.review.min_peer_nominations} > {settings.review.max_peer_nominations})."
    )
if settings.environment != "development" and settings.database_url.startswith("sqlite:///./"):
    _logger.warning("⚠ Using a local SQLite file outside development.")
