"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Out-of-range GC intervals are accepted here and ignored by configure_gc,
      which keeps its previous value

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from session_cache.core.domain_types import (
    DEFAULT_CACHE_LIFETIME_SECONDS, DEFAULT_GC_INTERVAL_HOURS,
    DEFAULT_MAX_AGE_HOURS, DEFAULT_SID_LENGTH,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Identity: cookie is "<app_name>-sid"
    app_name: str = "msm-server"

    # Database
    database_url: str = (
        "postgresql+asyncpg://msm:msm@db:5432/msm"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_tables: bool = False

    # Session cache
    session_cache_lifetime_seconds: int = DEFAULT_CACHE_LIFETIME_SECONDS
    session_gc_interval_hours: int = DEFAULT_GC_INTERVAL_HOURS
    session_max_age_hours: int = DEFAULT_MAX_AGE_HOURS
    session_id_length: int = DEFAULT_SID_LENGTH

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def cookie_name(self) -> str:
        return f"{self.app_name}-sid"

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_max_age_hours * 3600


@lru_cache
def get_settings() -> Settings:
    return Settings()
