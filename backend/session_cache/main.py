"""Session Cache API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SessionCacheError → structured JSON responses
    - Database, store, registry and both schedules are created in lifespan startup
    - Shutdown stops schedules, flushes every active session, then closes the database

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Registry on app.state, not a module global: tests swap it per fixture
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from session_cache.api.error_handlers import register_error_handlers
from session_cache.api.routes import health, session_values
from session_cache.config import get_settings
from session_cache.infrastructure.database import init_db
from session_cache.infrastructure.observability import setup_logging
from session_cache.infrastructure.session_store import SqlSessionStore
from session_cache.services.lifecycle import shutdown
from session_cache.services.registry import SessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_create_tables:
        await db.create_all()

    store = SqlSessionStore(db)
    registry = SessionRegistry(
        store,
        cookie_name=settings.cookie_name,
        max_age=settings.session_max_age_seconds,
        sid_length=settings.session_id_length,
        logger=logging.getLogger("session_cache.registry"),
    )
    registry.configure_gc(
        settings.session_cache_lifetime_seconds, settings.session_gc_interval_hours,
    )
    app.state.registry = registry
    logger.info("Session cache API started")
    yield
    logger.info("Session cache API shutting down")
    await shutdown(registry, store, logger)


app = FastAPI(
    title="MSM Session Cache", version="1.0.0", lifespan=lifespan,
)

register_error_handlers(app)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(session_values.router)
