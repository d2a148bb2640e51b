"""Session table — one row per session id with the codec blob.

Revision ID: 001_msm_session
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_msm_session"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "msm_session",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("started", sa.BigInteger, nullable=False),
        sa.Column("updated", sa.BigInteger, nullable=False),
        sa.Column("data", sa.LargeBinary, nullable=False),
    )
    op.create_index("ix_msm_session_updated", "msm_session", ["updated"])


def downgrade() -> None:
    op.drop_index("ix_msm_session_updated", table_name="msm_session")
    op.drop_table("msm_session")
