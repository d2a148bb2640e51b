"""Error Handlers — map session cache failures onto HTTP responses.

Invariants:
    - SessionCacheError → its own http_status + to_response() envelope
    - 400-level errors log at WARNING, store/config/codec failures at ERROR
    - PersistenceError responses carry Retry-After (the store is expected back)
    - RequestValidationError → 400 with field-level details
    - Any other Exception → 500 without internal details

Design Decisions:
    - Handlers are plain module functions registered with add_exception_handler,
      so tests can call them directly
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from session_cache.core.errors import (
    ErrorSeverity, PersistenceError, SessionCacheError,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SessionCacheError, session_cache_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


async def session_cache_error_handler(
    request: Request, exc: SessionCacheError,
) -> JSONResponse:
    sid = exc.context.session_id
    level = logging.WARNING if exc.http_status < 500 else logging.ERROR
    logger.log(
        level,
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "session_id": sid[:8] if sid else None,
        },
    )
    headers = None
    if isinstance(exc, PersistenceError):
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}: {len(details)} field(s)",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
