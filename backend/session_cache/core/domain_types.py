"""Domain Types — rich types and constants shared across the session cache.

Invariants:
    - SessionId wraps str; sids are opaque, never parsed
    - GC interval is bounded 0 < hours < MAX_GC_INTERVAL_HOURS
    - Lifecycle states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - Defaults mirror the values the cache has always shipped with (120s cache, 168h rows)
"""

import secrets
import string
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", str)

SID_ALPHABET = string.ascii_letters + string.digits
DEFAULT_SID_LENGTH = 64


# ─── Scheduling Bounds ───────────────────────────────────────────

DEFAULT_CACHE_LIFETIME_SECONDS = 120
DEFAULT_GC_INTERVAL_HOURS = 1
MAX_GC_INTERVAL_HOURS = 720
DEFAULT_MAX_AGE_HOURS = 168


# ─── Enums ───────────────────────────────────────────────────────

class SessionState(str, Enum):
    """In-memory lifecycle of a session id.

    An evicted session is indistinguishable from one never seen: both are
    ABSENT until the next start() reloads the row.
    """
    ABSENT = "absent"
    LOADING = "loading"
    ACTIVE = "active"


def mint_session_id(length: int = DEFAULT_SID_LENGTH) -> SessionId:
    """Generate a cryptographically random sid of `length` alphanumerics."""
    if length <= 0:
        raise ValueError("session id length must be positive")
    return SessionId("".join(secrets.choice(SID_ALPHABET) for _ in range(length)))
