"""Metadata and statistics operations."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or update a metadata key-value pair."""
    conn.execute(
        """
        INSERT INTO metadata (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
        (key, value),
    )
    conn.commit()


def get_all_metadata(conn: sqlite3.Connection) -> dict[str, str]:
    """Retrieve all metadata as a dictionary."""
    cursor = conn.execute("SELECT key, value FROM metadata")
    return {row["key"]: row["value"] for row in cursor.fetchall()}


def get_stats(conn: sqlite3.Connection, *, today: date | None = None) -> dict[str, Any]:
    """
    Get summary statistics and progress analytics for the workspace.

    A deadline counts as met when the task is completed and its due date
    has not yet passed. Completion dates are not recorded, so this is an
    approximation.
    """
    today = today or date.today()
    stats: dict[str, Any] = {}

    for table, key in (
        ("tasks", "total_tasks"),
        ("notes", "total_notes"),
        ("events", "total_events"),
        ("knowledge_items", "total_knowledge_items"),
    ):
        cursor = conn.execute(f"SELECT COUNT(*) as count FROM {table}")
        stats[key] = cursor.fetchone()["count"]

    cursor = conn.execute("SELECT COUNT(*) as count FROM tasks WHERE completed = 1")
    stats["completed_tasks"] = cursor.fetchone()["count"]

    cursor = conn.execute("SELECT COUNT(*) as count FROM tasks WHERE due_date IS NOT NULL")
    stats["total_deadlines"] = cursor.fetchone()["count"]

    cursor = conn.execute(
        """
        SELECT COUNT(*) as count FROM tasks
        WHERE due_date IS NOT NULL AND completed = 1 AND substr(due_date, 1, 10) >= ?
        """,
        (today.isoformat(),),
    )
    stats["deadlines_met"] = cursor.fetchone()["count"]

    return stats
