"""SQL Session Store — PersistentStore implementation over SQLAlchemy async.

Invariants:
    - read() returns None only when no row exists
    - insert_if_absent() is idempotent: a duplicate-key race is not an error
    - update() never loses data: a row removed by GC while cached is re-inserted
    - Every other failure surfaces as PersistenceError (via DatabaseSessionManager)

Design Decisions:
    - Core-style statements (select/update/delete) over ORM unit-of-work:
      each call is a single short transaction
    - No retries here: the registry retries on the next tick or request
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from session_cache.infrastructure.database import DatabaseSessionManager
from session_cache.models.session_record import SessionRecord

logger = logging.getLogger(__name__)


class SqlSessionStore:
    """Durable session rows in the msm_session table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def read(self, session_id: str) -> bytes | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(SessionRecord.data).where(SessionRecord.id == session_id),
            )
            row = result.first()
        if row is None:
            return None
        return bytes(row[0] or b"")

    async def insert_if_absent(
        self, session_id: str, data: bytes, created_at: int, updated_at: int,
    ) -> None:
        async with self._db.session() as db:
            db.add(SessionRecord(
                id=session_id, started=created_at, updated=updated_at, data=data,
            ))
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.debug(
                    "Session row already present", extra={"session_id": session_id[:8]},
                )

    async def update(self, session_id: str, data: bytes, updated_at: int) -> None:
        async with self._db.session() as db:
            result = await db.execute(
                update(SessionRecord)
                .where(SessionRecord.id == session_id)
                .values(data=data, updated=updated_at),
            )
            if result.rowcount == 0:
                logger.info(
                    "Session row missing on write, re-inserting",
                    extra={"session_id": session_id[:8]},
                )
                db.add(SessionRecord(
                    id=session_id, started=updated_at, updated=updated_at, data=data,
                ))
            await db.commit()

    async def delete_older_than(self, cutoff: int) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(SessionRecord).where(SessionRecord.updated < cutoff),
            )
            await db.commit()
        return result.rowcount or 0

    async def close(self) -> None:
        await self._db.close()
