"""Session Values — read and mutate the caller's session over HTTP.

Invariants:
    - Every route binds the request through current_session (cookie set on response)
    - Counter increments run inside Session.with_lock: concurrent requests never lose updates
    - Routes never touch the registry's active set directly

Design Decisions:
    - Thin routes: all state handling lives in Session/SessionRegistry
"""

import logging

from fastapi import APIRouter, Depends, status

from session_cache.api.dependencies import current_session
from session_cache.core.errors import ArgumentError
from session_cache.core.session import Session
from session_cache.schemas.session import (
    CounterIncrement, CounterResponse, SessionSummary, ValueResponse, ValueWrite,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/session", tags=["session"])


@router.get("", response_model=SessionSummary)
async def describe_session(session: Session = Depends(current_session)):
    """Session id and its string keys."""
    data = await session.snapshot()
    return SessionSummary(
        id=session.id,
        keys=sorted(k for k in data if isinstance(k, str)),
    )


@router.get("/values/{key}", response_model=ValueResponse)
async def read_value(key: str, session: Session = Depends(current_session)):
    marker = object()
    value = await session.get(key, marker)
    if value is marker:
        return ValueResponse(key=key, value=None, found=False)
    return ValueResponse(key=key, value=value)


@router.put("/values/{key}", response_model=ValueResponse)
async def write_value(
    key: str, body: ValueWrite, session: Session = Depends(current_session),
):
    await session.set(key, body.value)
    return ValueResponse(key=key, value=body.value)


@router.delete("/values/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_value(key: str, session: Session = Depends(current_session)):
    await session.delete(key)


@router.post("/counters/{key}/increment", response_model=CounterResponse)
async def increment_counter(
    key: str,
    body: CounterIncrement | None = None,
    session: Session = Depends(current_session),
):
    """Atomic read-modify-write of an integer value."""
    step = body.by if body else 1

    def bump(data: dict) -> int:
        current = data.get(key, 0)
        if type(current) is not int:
            raise ArgumentError(f"Value at '{key}' is not an integer", "key")
        data[key] = current + step
        return data[key]

    value = await session.with_lock(bump)
    return CounterResponse(key=key, value=value)
