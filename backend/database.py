import os
import sqlite3
from datetime import datetime
from typing import Optional
from contextlib import contextmanager

from models import Task

DATABASE_PATH = os.getenv("DATABASE_PATH", "moodflow.db")

@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def init_db():
    """Initialize database by running Alembic migrations."""
    import subprocess

    # Run alembic upgrade from the backend directory
    backend_dir = os.path.dirname(os.path.abspath(__file__))
    env = {**os.environ, "DATABASE_PATH": os.path.abspath(DATABASE_PATH)}
    subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=backend_dir,
        env=env,
        check=True
    )

def _row_to_task(row) -> Task:
    """Convert a database row to a Task model."""
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        estimated_time=row["estimated_time"],
        energy_level=row["energy_level"],
        is_completed=bool(row["is_completed"]),
        created_at=row["created_at"],
    )


def get_all_tasks(include_completed: bool = False) -> list[Task]:
    """Return tasks newest first. Completed tasks are left out unless include_completed."""
    query = "SELECT * FROM tasks"
    if not include_completed:
        query += " WHERE is_completed = 0"
    # rowid breaks ties between tasks created within the same microsecond
    query += " ORDER BY created_at DESC, rowid DESC"
    with get_db() as conn:
        rows = conn.execute(query).fetchall()
        return [_row_to_task(row) for row in rows]

def get_task_db(task_id: str) -> Optional[Task]:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if row:
            return _row_to_task(row)
    return None

def create_task_db(
    task_id: str,
    title: str,
    description: Optional[str] = None,
    estimated_time: Optional[int] = None,
    energy_level: Optional[int] = None
) -> Task:
    """Create an incomplete task. Estimates may be None when unknown."""
    created_at = datetime.now().isoformat()

    with get_db() as conn:
        conn.execute(
            """INSERT INTO tasks
               (id, title, description, estimated_time, energy_level, is_completed, created_at)
               VALUES (?, ?, ?, ?, ?, 0, ?)""",
            (task_id, title, description, estimated_time, energy_level, created_at)
        )
        conn.commit()

    return Task(
        id=task_id,
        title=title,
        description=description,
        estimated_time=estimated_time,
        energy_level=energy_level,
        is_completed=False,
        created_at=created_at,
    )

def set_task_completed_db(task_id: str, is_completed: bool) -> Optional[Task]:
    """Set the completion flag. Returns the updated task, or None if it doesn't exist."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE tasks SET is_completed = ? WHERE id = ?",
            (int(is_completed), task_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
    return get_task_db(task_id)

def delete_task_db(task_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        conn.commit()
        return cursor.rowcount > 0
