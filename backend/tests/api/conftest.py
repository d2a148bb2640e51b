"""API fixtures — ASGI client against the real app with a stub-backed registry.

Invariants:
    - Lifespan is not run: the registry is placed on app.state directly
    - Each test gets its own MemoryStore and registry; app.state is restored after
"""

import pytest
from httpx import ASGITransport, AsyncClient

from session_cache.main import app
from session_cache.services.registry import SessionRegistry

from tests.services.fake_store import COOKIE, MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(store):
    return SessionRegistry(store, cookie_name=COOKIE, cache_lifetime=60, max_age=3600)


@pytest.fixture
async def client(registry):
    previous = getattr(app.state, "registry", None)
    app.state.registry = registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.registry = previous
