"""Session Record ORM — one persisted row per session id.

Invariants:
    - id is the sid itself (opaque string primary key)
    - started/updated are integer epoch seconds
    - data is the Codec blob; empty for a row created on first visit

Design Decisions:
    - Epoch ints over DateTime columns: GC cutoff is a plain integer comparison,
      identical across SQLite, MySQL and PostgreSQL
    - Index on updated: GC deletes by range on it
"""

from sqlalchemy import BigInteger, Index, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from session_cache.db.base import Base


class SessionRecord(Base):
    """Durable copy of a session's data."""
    __tablename__ = "msm_session"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    started: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated: Mapped[int] = mapped_column(BigInteger, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, default=b"")

    __table_args__ = (
        Index("ix_msm_session_updated", "updated"),
    )
