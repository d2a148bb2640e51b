"""Boundary Protocols — contract between the session core and its backing store.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - read() returns None for a missing row; an existing row may hold an empty blob
    - All failures surface as PersistenceError; no retries at this layer
    - Timestamps are integer epoch seconds

Design Decisions:
    - Protocol over ABC: structural subtyping, test stubs need no inheritance
    - Async in Protocol: implementations do IO on the server event loop
"""

from typing import Protocol


class PersistentStore(Protocol):
    """Durable read/insert/update/delete of session rows keyed by id."""

    async def read(self, session_id: str) -> bytes | None: ...

    async def insert_if_absent(
        self, session_id: str, data: bytes, created_at: int, updated_at: int,
    ) -> None: ...

    async def update(
        self, session_id: str, data: bytes, updated_at: int,
    ) -> None: ...

    async def delete_older_than(self, cutoff: int) -> int: ...

    async def close(self) -> None: ...
