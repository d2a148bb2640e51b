"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - Models imported here so Base.metadata is complete before create_all/alembic run
"""

from session_cache.models.session_record import SessionRecord  # noqa: F401
