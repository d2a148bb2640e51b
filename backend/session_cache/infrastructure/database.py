"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy exceptions mapped to PersistenceError (core/errors.py)
    - An unusable database URL raises ConfigError at construction time

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects)
    - expire_on_commit=False: prevents lazy-load issues in async context
    - Pool sizing only passed for pooled dialects (SQLite uses a static/null pool)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    ArgumentError, DBAPIError, IntegrityError, InvalidRequestError, NoSuchModuleError,
    OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from session_cache.core.errors import ConfigError, PersistenceError
from session_cache.db.base import Base
import session_cache.models  # noqa: F401  (populates Base.metadata)

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        try:
            url = make_url(database_url)
            kwargs: dict = {"pool_pre_ping": True}
            if not url.get_backend_name().startswith("sqlite"):
                kwargs.update(
                    pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
                )
            self.engine = create_async_engine(url, **kwargs)
        except (ArgumentError, InvalidRequestError, NoSuchModuleError, ImportError) as e:
            raise ConfigError(str(e), "database_url")
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            operation, message = _classify(e)
            logger.error(f"DB {operation} error: {e}")
            raise PersistenceError(message, operation)
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create missing tables (development/SQLite; production uses alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_ERROR_KINDS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "commit", "Integrity constraint violated"),
    (OperationalError, "execute", "Connection or operational error"),
    (DBAPIError, "query", "Database driver error"),
)


def _classify(exc: SQLAlchemyError) -> tuple[str, str]:
    """Map a SQLAlchemy exception to (operation, user-safe message)."""
    for kind, operation, message in _ERROR_KINDS:
        if isinstance(exc, kind):
            return operation, message
    return "unknown", "Database operation failed"
