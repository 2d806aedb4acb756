"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Empty LOCK_PIN / HARDCORE_PIN are treated as unset

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - SESSION_SECRET optional: when unset a random per-process key is used (markers
      then die with the process — acceptable for single-worker deployments)
"""

import logging
import secrets
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://macdir:macdir@db:5432/macdir"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Session gate
    lock_pin: str | None = None
    hardcore_pin: str | None = None
    session_secret: str | None = None
    session_ttl_seconds: int = 60 * 60 * 4
    cookie_secure: bool = False

    @field_validator("lock_pin", "hardcore_pin", "session_secret", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_session_secret() -> str:
    """Signing key for session markers — configured, or random for this process."""
    configured = get_settings().session_secret
    if configured:
        return configured
    logger.warning(
        "SESSION_SECRET not set — using a per-process key; "
        "sessions will not survive a restart",
    )
    return secrets.token_hex(32)
