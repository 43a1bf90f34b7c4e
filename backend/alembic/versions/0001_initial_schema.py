"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-02-23

Creates the calendar_sessions table: one row per connected session,
holding only its OAuth refresh token.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "calendar_sessions",
        sa.Column("session_id", sa.String(36), primary_key=True),
        sa.Column("refresh_token", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("calendar_sessions")
