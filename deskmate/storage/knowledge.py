"""
Knowledge base storage operations.

Knowledge items are durable facts about the user (preferences, important
dates, personal details) that the assistant captured from conversation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .codec import decode_datetime, decode_tags, encode_datetime, encode_tags


@dataclass
class KnowledgeItem:
    """A knowledge base entry."""

    id: str
    title: str
    content: str
    category: str = "General"
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "tags": list(self.tags),
            "createdAt": encode_datetime(self.created_at),
            "updatedAt": encode_datetime(self.updated_at),
        }


def _row_to_item(row: sqlite3.Row) -> KnowledgeItem:
    return KnowledgeItem(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        category=row["category"] or "General",
        tags=decode_tags(row["tags"]),
        created_at=decode_datetime(row["created_at"]) or datetime.now(),
        updated_at=decode_datetime(row["updated_at"]) or datetime.now(),
    )


def save_knowledge_item(conn: sqlite3.Connection, item: KnowledgeItem) -> None:
    """Insert a knowledge item, or replace every column of an existing one."""
    conn.execute(
        """
        INSERT INTO knowledge_items (id, title, content, category, tags, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            title = excluded.title,
            content = excluded.content,
            category = excluded.category,
            tags = excluded.tags,
            updated_at = excluded.updated_at
        """,
        (
            item.id,
            item.title,
            item.content,
            item.category,
            encode_tags(item.tags),
            encode_datetime(item.created_at),
            encode_datetime(item.updated_at),
        ),
    )
    conn.commit()


def get_all_knowledge_items(conn: sqlite3.Connection) -> list[KnowledgeItem]:
    """Get all knowledge items, most recent first."""
    cursor = conn.execute("SELECT * FROM knowledge_items ORDER BY created_at DESC, rowid")
    return [_row_to_item(row) for row in cursor.fetchall()]


def delete_knowledge_item(conn: sqlite3.Connection, item_id: str) -> bool:
    """Delete a knowledge item by ID. Returns True if deleted, False if not found."""
    cursor = conn.execute("DELETE FROM knowledge_items WHERE id = ?", (item_id,))
    conn.commit()
    return cursor.rowcount > 0
