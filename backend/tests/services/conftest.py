"""Service test fixtures — stub store, fixed clock and a registry wired to both.

Invariants:
    - Every test gets a fresh MemoryStore and registry (no shared active set)
    - Registry clock is a FixedClock so idle/GC cutoffs are exact
"""

import pytest

from session_cache.services.registry import SessionRegistry

from tests.services.fake_store import COOKIE, FixedClock, MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def registry(store, clock):
    return SessionRegistry(
        store,
        cookie_name=COOKIE,
        cache_lifetime=60,
        max_age=3600,
        clock=clock,
    )
