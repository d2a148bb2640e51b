"""Error Hierarchy — typed, categorized exceptions for every session cache failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Argument/request errors (400-level) are recoverable; persistence errors are critical
    - to_response() produces the REST envelope used by the FastAPI handlers
    - No internal details (SQL, driver messages) leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SessionCacheError base: one global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    SERIALIZATION = "serialization"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class SessionCacheError(Exception):
    """Base exception for all session cache errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                },
            }
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class ArgumentError(SessionCacheError):
    """Invalid argument passed to a session operation (e.g. a None key)."""
    def __init__(self, message: str, argument: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.argument = argument


class RequestParseError(SessionCacheError):
    """Inbound request could not be parsed while resolving the session id."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot parse request: {message}",
            "REQUEST_PARSE_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ConfigError(SessionCacheError):
    """Configuration is unusable; fatal at startup."""
    def __init__(self, message: str, setting: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid configuration for {setting}: {message}",
            "CONFIG_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting


class PersistenceError(SessionCacheError):
    """Backing store read/write/delete failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Database {operation} failed: {message}",
            "PERSISTENCE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation


class CodecError(SessionCacheError):
    """Session blob is malformed or references an unregistered type."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CODEC_ERROR", ErrorCategory.SERIALIZATION,
            ErrorSeverity.ERROR, context, 500,
        )
