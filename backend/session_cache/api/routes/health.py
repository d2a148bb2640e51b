"""Health & Readiness Probes — liveness, readiness and cache stats endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - GET /health/sessions never takes session locks (counts only)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

import session_cache.infrastructure.database as db_module
from session_cache.api.dependencies import get_registry
from session_cache.services.registry import SessionRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "msm-session-cache"}


@router.get("/ready")
async def readiness_check():
    """Readiness probe — includes database connectivity."""
    db = db_module.db_manager
    db_ok = await db.health_check() if db else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}


@router.get("/sessions")
async def session_stats(registry: SessionRegistry = Depends(get_registry)):
    """Working-set size and schedule settings."""
    return {
        "active": registry.active_count,
        "cache_lifetime_seconds": registry.cache_lifetime,
        "gc_interval_hours": registry.gc_interval_hours,
        "max_age_seconds": registry.max_age,
        "scheduled": registry.scheduled,
    }
