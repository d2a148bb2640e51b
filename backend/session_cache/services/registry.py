"""Session Registry — hot in-memory working set synchronized with a durable store.

Invariants:
    - At most one Session per id in the active set (start() re-checks before appending)
    - Every add/remove on the active set happens under self.lock
    - Lock order is always registry → session; no path takes self.lock while holding a session lock
    - start() never holds self.lock across store IO
    - A Session leaves the active set only after its data was persisted; a failed
      persist keeps it cached for the next tick
    - GC is age-based (updated < now - max_age) and ignores the active set
    - A sid reads LOADING while any start() is still loading it; an unexpected
      error while persisting one session never aborts the sweep for the others
    - A cache hit refreshes only in-memory last_active; the row's `updated`
      column moves only when flush writes it

Design Decisions:
    - Active set is a list with linear scans: lookup/remove_at/for_each are index-based
      and the working set is small (bounded by cache_lifetime)
    - Flush and GC are RecurringTasks with explicit stop(), not self-rearming timers
    - Logger injected (defaults to module logger) so the app controls sinks
    - Clock injectable for deterministic idle/GC tests
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote

from fastapi import Request, Response

from session_cache.core.codec import Codec, default_codec
from session_cache.core.domain_types import (
    DEFAULT_CACHE_LIFETIME_SECONDS, DEFAULT_GC_INTERVAL_HOURS,
    DEFAULT_MAX_AGE_HOURS, DEFAULT_SID_LENGTH, MAX_GC_INTERVAL_HOURS,
    SessionState, mint_session_id,
)
from session_cache.core.errors import (
    ConfigError, PersistenceError, SessionCacheError,
)
from session_cache.core.session import Session
from session_cache.core.store_protocols import PersistentStore
from session_cache.infrastructure.scheduler import RecurringTask
from session_cache.services.cookie_resolver import CookieResolver

module_logger = logging.getLogger(__name__)


@dataclass
class FlushStats:
    """Outcome of one flush pass."""
    evicted: int = 0
    retained: int = 0
    failed: int = 0


class SessionRegistry:
    """Owns the active sessions, binds requests to them, runs flush and GC."""

    def __init__(
        self,
        store: PersistentStore,
        *,
        cookie_name: str,
        cache_lifetime: float = DEFAULT_CACHE_LIFETIME_SECONDS,
        gc_interval_hours: float = DEFAULT_GC_INTERVAL_HOURS,
        max_age: float = DEFAULT_MAX_AGE_HOURS * 3600,
        cookie_max_age: int | None = None,
        sid_length: int = DEFAULT_SID_LENGTH,
        codec: Codec = default_codec,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if store is None:
            raise ConfigError("valid persistent store required", "store")
        self.store = store
        self.cookie_name = cookie_name
        self.cache_lifetime = cache_lifetime
        self.gc_interval_hours = gc_interval_hours
        self.max_age = max_age
        self.cookie_max_age = int(max_age) if cookie_max_age is None else cookie_max_age
        self.sid_length = sid_length
        self.codec = codec
        self.resolver = CookieResolver(cookie_name)
        self.lock = asyncio.Lock()
        self._active: list[Session] = []
        self._loading: Counter[str] = Counter()
        self._log = logger or module_logger
        self._clock = clock
        self._flush_task: RecurringTask | None = None
        self._gc_task: RecurringTask | None = None

    # ─── Request binding ────────────────────────────────────────

    async def start(self, request: Request, response: Response) -> Session:
        """Bind the request to its Session, loading or creating it on a miss."""
        sid = await self.resolver.resolve(request)
        if not sid:
            sid = mint_session_id(self.sid_length)

        async with self.lock:
            _, session = self.lookup(sid)
            if session is not None:
                await session.touch()

        if session is None:
            session = await self._load_and_register(sid)

        self._set_cookie(request, response, sid)
        return session

    async def _load_and_register(self, sid: str) -> Session:
        # Counted per sid: concurrent loads of one id each hold a reference
        self._loading[sid] += 1
        try:
            loaded = await self._read(sid)
            async with self.lock:
                _, existing = self.lookup(sid)
                if existing is not None:
                    # A concurrent start() for the same sid won the race
                    await existing.touch()
                    return existing
                self.append(loaded)
            return loaded
        finally:
            self._loading[sid] -= 1
            if self._loading[sid] <= 0:
                del self._loading[sid]

    async def _read(self, sid: str) -> Session:
        """Restore the session row, or create an empty one when missing."""
        blob = await self.store.read(sid)
        if blob is None:
            now = int(self._clock())
            await self.store.insert_if_absent(sid, b"", now, now)
            self._log.info("Session created", extra={"session_id": sid[:8]})
            return Session(sid, clock=self._clock)
        try:
            data = self.codec.decode(blob)
        except SessionCacheError as e:
            e.context.session_id = sid
            raise
        return Session(sid, data, clock=self._clock)

    def _set_cookie(self, request: Request, response: Response, sid: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=quote(sid, safe=""),
            max_age=self.cookie_max_age,
            path="/",
            httponly=True,
        )
        # Later logic in the same request observes the sid
        request.cookies[self.cookie_name] = sid
        request.state.session_id = sid

    # ─── Membership primitives (caller holds self.lock) ─────────

    def lookup(self, sid: str) -> tuple[int, Session | None]:
        """Linear scan; returns (-1, None) on miss."""
        found: list = [-1, None]

        def match(idx: int, session: Session) -> bool:
            if session.id == sid:
                found[0], found[1] = idx, session
                return False
            return True

        self.for_each(match)
        return found[0], found[1]

    def append(self, session: Session) -> None:
        self._active.append(session)

    def remove_at(self, index: int) -> None:
        """Drop the session at index; out-of-range indexes are ignored."""
        if -1 < index < len(self._active):
            del self._active[index]

    def for_each(self, callback: Callable[[int, Session], bool]) -> None:
        """Apply callback to each session until it returns False."""
        for idx, session in enumerate(self._active):
            if callback(idx, session) is False:
                break

    @property
    def active_count(self) -> int:
        return len(self._active)

    def state_of(self, sid: str) -> SessionState:
        if any(s.id == sid for s in self._active):
            return SessionState.ACTIVE
        if sid in self._loading:
            return SessionState.LOADING
        return SessionState.ABSENT

    # ─── Flush ──────────────────────────────────────────────────

    async def flush(self) -> FlushStats:
        """Persist and evict sessions idle longer than cache_lifetime."""
        cutoff = self._clock() - self.cache_lifetime
        async with self.lock:
            stats = await self._sweep(cutoff)
        if stats.evicted or stats.failed:
            self._log.info(
                f"Flush: evicted={stats.evicted} retained={stats.retained} failed={stats.failed}",
                extra={"evicted": stats.evicted, "retained": stats.retained, "failed": stats.failed},
            )
        return stats

    async def flush_all(self) -> FlushStats:
        """Persist and evict every active session (shutdown path)."""
        async with self.lock:
            stats = await self._sweep(None)
        self._log.info(
            f"Flushed all sessions: evicted={stats.evicted} failed={stats.failed}",
            extra={"evicted": stats.evicted, "failed": stats.failed},
        )
        return stats

    async def _sweep(self, cutoff: float | None) -> FlushStats:
        stats = FlushStats()
        live: list[Session] = []
        for session in self._active:
            if cutoff is not None and not await session.is_idle(cutoff):
                live.append(session)
                stats.retained += 1
                continue
            try:
                await self._persist(session)
            except SessionCacheError as e:
                self._log.error(
                    f"Failed to persist session: {e.message}",
                    extra={"session_id": session.id[:8], "error_code": e.code},
                )
                live.append(session)
                stats.failed += 1
                continue
            except Exception as e:
                # A broken session stays cached; the rest of the sweep goes on
                self._log.error(
                    f"Unexpected error persisting session: {e}", exc_info=True,
                    extra={"session_id": session.id[:8], "error_code": "INTERNAL_ERROR"},
                )
                live.append(session)
                stats.failed += 1
                continue
            stats.evicted += 1
        self._active = live
        return stats

    async def _persist(self, session: Session) -> None:
        """Encode and write the session while holding its own lock."""
        async def write(data: dict) -> None:
            blob = self.codec.encode(data)
            await self.store.update(session.id, blob, int(self._clock()))

        await session.with_lock(write)

    # ─── Garbage collection ─────────────────────────────────────

    async def garbage_collect(self) -> int:
        """Delete persisted rows not updated within max_age. Never raises on store failure."""
        cutoff = int(self._clock() - self.max_age)
        try:
            deleted = await self.store.delete_older_than(cutoff)
        except PersistenceError as e:
            self._log.error(
                f"Session GC failed: {e.message}",
                extra={"error_code": e.code, "cutoff": cutoff},
            )
            return 0
        if deleted:
            self._log.info(
                f"Session GC removed {deleted} rows",
                extra={"deleted": deleted, "cutoff": cutoff},
            )
        return deleted

    # ─── Scheduling ─────────────────────────────────────────────

    def configure_gc(self, cache_seconds: float, gc_interval_hours: float) -> None:
        """Apply in-range settings (others keep the prior value) and (re)start both schedules.

        Must be called from a running event loop.
        """
        if cache_seconds > 0:
            self.cache_lifetime = cache_seconds
        if 0 < gc_interval_hours < MAX_GC_INTERVAL_HOURS:
            self.gc_interval_hours = gc_interval_hours

        if self._flush_task is None:
            self._flush_task = RecurringTask(
                "session-flush", self.cache_lifetime, self.flush, self._log,
            )
        if self._gc_task is None:
            self._gc_task = RecurringTask(
                "session-gc", self.gc_interval_hours * 3600, self.garbage_collect, self._log,
            )
        # Running loops pick the new interval up on their next wait
        self._flush_task.interval = self.cache_lifetime
        self._gc_task.interval = self.gc_interval_hours * 3600
        self._flush_task.start()
        self._gc_task.start()
        self._log.info(
            f"Session schedules started: flush every {self.cache_lifetime}s, "
            f"GC every {self.gc_interval_hours}h",
        )

    async def stop(self) -> None:
        """Stop both schedules; in-flight sweeps finish first."""
        for task in (self._flush_task, self._gc_task):
            if task is not None:
                await task.stop()
        self._flush_task = None
        self._gc_task = None

    @property
    def scheduled(self) -> bool:
        return any(
            t is not None and t.running for t in (self._flush_task, self._gc_task)
        )
