"""Calendar event storage operations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .codec import decode_datetime, encode_datetime
from .schema import StorageError

CATEGORIES = ("Personal", "General", "Work", "Health", "Education")


@dataclass
class CalendarEvent:
    """A calendar entry. Times are naive local datetimes."""

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool = False
    notes: str = ""
    category: str = "General"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start": encode_datetime(self.start),
            "end": encode_datetime(self.end),
            "allDay": self.all_day,
            "notes": self.notes,
            "category": self.category,
        }


def _row_to_event(row: sqlite3.Row) -> CalendarEvent:
    return CalendarEvent(
        id=row["id"],
        title=row["title"],
        start=decode_datetime(row["start_at"]),
        end=decode_datetime(row["end_at"]),
        all_day=bool(row["all_day"]),
        notes=row["notes"] or "",
        category=row["category"] or "General",
    )


def save_event(conn: sqlite3.Connection, event: CalendarEvent) -> None:
    """Insert an event, or replace every column of an existing one."""
    if event.category not in CATEGORIES:
        raise StorageError(f"Invalid category for event {event.id}: {event.category!r}")

    conn.execute(
        """
        INSERT INTO events (id, title, start_at, end_at, all_day, notes, category)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            title = excluded.title,
            start_at = excluded.start_at,
            end_at = excluded.end_at,
            all_day = excluded.all_day,
            notes = excluded.notes,
            category = excluded.category
        """,
        (
            event.id,
            event.title,
            encode_datetime(event.start),
            encode_datetime(event.end),
            int(event.all_day),
            event.notes,
            event.category,
        ),
    )
    conn.commit()


def get_all_events(conn: sqlite3.Connection) -> list[CalendarEvent]:
    """Get all events in chronological order."""
    cursor = conn.execute("SELECT * FROM events ORDER BY start_at, rowid")
    return [_row_to_event(row) for row in cursor.fetchall()]


def delete_event(conn: sqlite3.Connection, event_id: str) -> bool:
    """Delete an event by ID. Returns True if deleted, False if not found."""
    cursor = conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
    conn.commit()
    return cursor.rowcount > 0
