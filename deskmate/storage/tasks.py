"""Task storage operations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .codec import decode_date, decode_datetime, encode_date, encode_datetime
from .schema import StorageError

PRIORITIES = ("low", "medium", "high", "autotask")


@dataclass
class Task:
    """A to-do item. Priority "autotask" hands the task to the research workflow."""

    id: str
    title: str
    completed: bool = False
    priority: str = "medium"
    due_date: date | None = None
    notes: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "dueDate": encode_date(self.due_date),
            "notes": self.notes,
            "createdAt": encode_datetime(self.created_at),
        }


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        completed=bool(row["completed"]),
        priority=row["priority"],
        due_date=decode_date(row["due_date"]),
        notes=row["notes"] or "",
        created_at=decode_datetime(row["created_at"]) or datetime.now(),
    )


def save_task(conn: sqlite3.Connection, task: Task) -> None:
    """Insert a task, or replace every column of an existing one."""
    if task.priority not in PRIORITIES:
        raise StorageError(f"Invalid priority for task {task.id}: {task.priority!r}")

    conn.execute(
        """
        INSERT INTO tasks (id, title, completed, priority, due_date, notes, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            title = excluded.title,
            completed = excluded.completed,
            priority = excluded.priority,
            due_date = excluded.due_date,
            notes = excluded.notes
        """,
        (
            task.id,
            task.title,
            int(task.completed),
            task.priority,
            encode_date(task.due_date),
            task.notes,
            encode_datetime(task.created_at),
        ),
    )
    conn.commit()


def get_task(conn: sqlite3.Connection, task_id: str) -> Task | None:
    """Get a task by ID."""
    cursor = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
    row = cursor.fetchone()
    return _row_to_task(row) if row else None


def get_all_tasks(conn: sqlite3.Connection) -> list[Task]:
    """Get all tasks, oldest first."""
    cursor = conn.execute("SELECT * FROM tasks ORDER BY created_at, rowid")
    return [_row_to_task(row) for row in cursor.fetchall()]


def delete_task(conn: sqlite3.Connection, task_id: str) -> bool:
    """Delete a task by ID. Returns True if deleted, False if not found."""
    cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    conn.commit()
    return cursor.rowcount > 0
