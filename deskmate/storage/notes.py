"""Note storage operations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .codec import decode_datetime, decode_tags, encode_datetime, encode_tags


@dataclass
class Note:
    """A free-form note."""

    id: str
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "createdAt": encode_datetime(self.created_at),
            "updatedAt": encode_datetime(self.updated_at),
        }


def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        title=row["title"],
        content=row["content"] or "",
        tags=decode_tags(row["tags"]),
        created_at=decode_datetime(row["created_at"]) or datetime.now(),
        updated_at=decode_datetime(row["updated_at"]) or datetime.now(),
    )


def save_note(conn: sqlite3.Connection, note: Note) -> None:
    """Insert a note, or replace every column of an existing one."""
    conn.execute(
        """
        INSERT INTO notes (id, title, content, tags, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            title = excluded.title,
            content = excluded.content,
            tags = excluded.tags,
            updated_at = excluded.updated_at
        """,
        (
            note.id,
            note.title,
            note.content,
            encode_tags(note.tags),
            encode_datetime(note.created_at),
            encode_datetime(note.updated_at),
        ),
    )
    conn.commit()


def get_all_notes(conn: sqlite3.Connection) -> list[Note]:
    """Get all notes, most recently updated first."""
    cursor = conn.execute("SELECT * FROM notes ORDER BY updated_at DESC, rowid")
    return [_row_to_note(row) for row in cursor.fetchall()]


def delete_note(conn: sqlite3.Connection, note_id: str) -> bool:
    """Delete a note by ID. Returns True if deleted, False if not found."""
    cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
    conn.commit()
    return cursor.rowcount > 0
