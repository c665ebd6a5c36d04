"""Initial schema - tasks table

Revision ID: 001
Revises: None
Create Date: 2025-11-02

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            estimated_time INTEGER,
            energy_level INTEGER,
            is_completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
    """))

    # Listing is always filtered by completion and sorted newest first
    conn.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_tasks_completed_created ON tasks (is_completed, created_at)"
    ))


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DROP INDEX IF EXISTS ix_tasks_completed_created"))
    conn.execute(text("DROP TABLE IF EXISTS tasks"))
