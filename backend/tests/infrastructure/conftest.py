"""Infrastructure fixtures — in-memory SQLite behind the real DatabaseSessionManager.

Invariants:
    - Every test gets a fresh in-memory SQLite database with the msm_session table
"""

import pytest

from session_cache.infrastructure.database import DatabaseSessionManager
from session_cache.infrastructure.session_store import SqlSessionStore


@pytest.fixture
async def db():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def sql_store(db):
    return SqlSessionStore(db)
