"""In-memory PersistentStore and request builders for registry tests.

MemoryStore records every call so tests can assert on store traffic,
and can be told to fail specific operations with PersistenceError.
"""

import asyncio
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import Response

from session_cache.core.errors import PersistenceError

COOKIE = "msm-server-sid"


class MemoryStore:
    """Dict-backed store: id -> {"started", "updated", "data"}."""

    def __init__(self, yield_on_io: bool = False):
        self.rows: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.closed = False
        self._yield = yield_on_io

    async def _io(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if self._yield:
            await asyncio.sleep(0)
        if op in self.fail_on:
            raise PersistenceError("simulated outage", op)

    def calls_of(self, op: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == op]

    async def read(self, session_id):
        await self._io("read", session_id)
        row = self.rows.get(session_id)
        return None if row is None else row["data"]

    async def insert_if_absent(self, session_id, data, created_at, updated_at):
        await self._io("insert_if_absent", session_id)
        self.rows.setdefault(
            session_id, {"started": created_at, "updated": updated_at, "data": data},
        )

    async def update(self, session_id, data, updated_at):
        await self._io("update", session_id)
        row = self.rows.setdefault(
            session_id, {"started": updated_at, "updated": updated_at, "data": b""},
        )
        row["data"] = data
        row["updated"] = updated_at

    async def delete_older_than(self, cutoff):
        await self._io("delete_older_than", cutoff)
        stale = [sid for sid, row in self.rows.items() if row["updated"] < cutoff]
        for sid in stale:
            del self.rows[sid]
        return len(stale)

    async def close(self):
        self.closed = True


class FixedClock:
    """Controllable time source (epoch seconds)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_request(
    cookies: dict[str, str] | None = None,
    form: dict[str, str] | None = None,
    query: dict[str, str] | None = None,
    content_type: str | None = None,
    body: bytes = b"",
) -> Request:
    """Build a bare Starlette request (no app in scope)."""
    headers = []
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        headers.append((b"cookie", cookie_header.encode()))
    if form is not None:
        body = urlencode(form).encode()
        content_type = content_type or "application/x-www-form-urlencoded"
    if content_type:
        headers.append((b"content-type", content_type.encode()))
    headers.append((b"content-length", str(len(body)).encode()))

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST" if body else "GET",
        "path": "/",
        "headers": headers,
        "query_string": urlencode(query or {}).encode(),
    }
    return Request(scope, receive)


def make_response() -> Response:
    return Response()


def set_cookie_headers(response: Response) -> list[str]:
    return response.headers.getlist("set-cookie")
