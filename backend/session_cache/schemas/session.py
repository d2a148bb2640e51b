"""Session Schemas — Pydantic models for the session values API.

Invariants:
    - Keys exposed over HTTP are strings (1-255 chars); non-string keys stay internal
    - Values are any JSON value; they round-trip through the session codec

Design Decisions:
    - Any for value: the codec, not the API layer, decides what is storable
"""

from typing import Any

from pydantic import BaseModel, Field


class ValueWrite(BaseModel):
    """Body for PUT /session/values/{key}."""
    value: Any = None


class ValueResponse(BaseModel):
    key: str
    value: Any = None
    found: bool = True


class CounterIncrement(BaseModel):
    """Body for POST /session/counters/{key}/increment."""
    by: int = Field(1, ge=-1_000_000, le=1_000_000)


class CounterResponse(BaseModel):
    key: str
    value: int


class SessionSummary(BaseModel):
    id: str
    keys: list[str]
