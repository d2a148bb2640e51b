"""Session — one client's server-side state, guarded by its own lock.

Invariants:
    - Every read/write of data and last_active happens under self._lock
    - get/set/delete reject a None key with ArgumentError
    - with_lock runs caller logic under the same lock as get/set/delete,
      so compound read-modify-write is atomic per session
    - The lock is never exposed; callers get scoped access only

Design Decisions:
    - asyncio.Lock, not threading.Lock: every caller runs on the server event loop
    - with_lock accepts plain or coroutine functions (handlers may await inside)
    - Clock injectable for deterministic idle tests
"""

import asyncio
import inspect
import time
from typing import Any, Callable

from session_cache.core.domain_types import SessionId
from session_cache.core.errors import ArgumentError, ErrorContext


class Session:
    """Server-side session: id, last activity timestamp and key-value data."""

    __slots__ = ("_id", "_data", "_last_active", "_lock", "_clock")

    def __init__(
        self,
        sid: str,
        data: dict | None = None,
        *,
        last_active: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._id = SessionId(sid)
        self._data: dict = dict(data) if data else {}
        self._clock = clock
        self._last_active = clock() if last_active is None else last_active
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Session(id={self._id[:8]}…)"

    @property
    def id(self) -> SessionId:
        return self._id

    async def get(self, key: Any, default: Any = None) -> Any:
        self._check_key(key, "get")
        async with self._lock:
            return self._data.get(key, default)

    async def set(self, key: Any, value: Any) -> None:
        self._check_key(key, "set")
        async with self._lock:
            self._data[key] = value

    async def delete(self, key: Any) -> None:
        """Remove key; absent keys are ignored."""
        self._check_key(key, "delete")
        async with self._lock:
            self._data.pop(key, None)

    async def with_lock(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run fn(data, *args, **kwargs) while holding the session lock.

        fn receives the live data dict and may mutate it; its return value
        (awaited if it is a coroutine) is returned to the caller.
        """
        async with self._lock:
            result = fn(self._data, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

    async def touch(self) -> None:
        async with self._lock:
            self._last_active = self._clock()

    async def is_idle(self, cutoff: float) -> bool:
        """True when the last activity happened strictly before cutoff."""
        async with self._lock:
            return self._last_active < cutoff

    async def last_active(self) -> float:
        async with self._lock:
            return self._last_active

    async def snapshot(self) -> dict:
        """Shallow copy of the data taken under the lock."""
        async with self._lock:
            return dict(self._data)

    def _check_key(self, key: Any, operation: str) -> None:
        if key is None:
            raise ArgumentError(
                "Key must be valid, not None", "key",
                ErrorContext(session_id=self._id, operation=operation),
            )
