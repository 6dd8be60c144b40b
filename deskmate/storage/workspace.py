"""
Local-first workspace store.

The in-memory collections are the authoritative view: every mutation is
applied to them synchronously (so ids are visible immediately) and then
persisted to SQLite on a best-effort basis. When an event loop is running,
each write is scheduled as its own asyncio task and nobody waits for it;
without a loop the write happens inline. A failed write is logged and
reported through ``on_error`` but never rolls back the in-memory change.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable

from .connection import init_db
from .events import CalendarEvent, delete_event, get_all_events, save_event
from .knowledge import (
    KnowledgeItem,
    delete_knowledge_item,
    get_all_knowledge_items,
    save_knowledge_item,
)
from .metadata import get_stats
from .notes import Note, delete_note, get_all_notes, save_note
from .schema import StorageError
from .tasks import Task, delete_task, get_all_tasks, save_task

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, Exception], None]


def new_id() -> str:
    """Generate an entity id."""
    return str(uuid.uuid4())


@dataclass
class WorkspaceSnapshot:
    """Read-only listing of the workspace at one point in time."""

    tasks: list[Task] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    events: list[CalendarEvent] = field(default_factory=list)
    knowledge_items: list[KnowledgeItem] = field(default_factory=list)

    def to_context(self) -> dict[str, Any]:
        """Compact listing handed to the assistant so it can resolve ids."""
        return {
            "tasks": [
                {
                    "id": t.id,
                    "title": t.title,
                    "completed": t.completed,
                    "priority": t.priority,
                    "dueDate": t.due_date.isoformat() if t.due_date else None,
                }
                for t in self.tasks
            ],
            "notes": [{"id": n.id, "title": n.title, "tags": n.tags} for n in self.notes],
            "events": [
                {
                    "id": e.id,
                    "title": e.title,
                    "start": e.start.isoformat(timespec="minutes"),
                    "end": e.end.isoformat(timespec="minutes"),
                    "category": e.category,
                }
                for e in self.events
            ],
            "knowledgeItems": [
                {"id": k.id, "title": k.title, "category": k.category, "tags": k.tags}
                for k in self.knowledge_items
            ],
        }


class WorkspaceStore:
    """Tasks, notes, events and knowledge items with CRUD operations."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        on_error: ErrorCallback | None = None,
    ):
        self.conn = conn
        self.on_error = on_error
        self._tasks: dict[str, Task] = {}
        self._notes: dict[str, Note] = {}
        self._events: dict[str, CalendarEvent] = {}
        self._knowledge: dict[str, KnowledgeItem] = {}
        self._pending: set[asyncio.Task] = set()
        # event id -> the view that failed to persist (None for a failed delete)
        self._unsynced_events: dict[str, CalendarEvent | None] = {}
        self.reload()

    @classmethod
    def open(cls, path: str, **kwargs: Any) -> "WorkspaceStore":
        """Open (or create) the workspace database at ``path``."""
        return cls(init_db(path), **kwargs)

    def reload(self) -> None:
        """Replace every in-memory collection with the database contents."""
        self._tasks = {t.id: t for t in get_all_tasks(self.conn)}
        self._notes = {n.id: n for n in get_all_notes(self.conn)}
        self._events = {e.id: e for e in get_all_events(self.conn)}
        self._knowledge = {k.id: k for k in get_all_knowledge_items(self.conn)}

    def close(self) -> None:
        self.conn.close()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def notes(self) -> list[Note]:
        return list(self._notes.values())

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events.values())

    @property
    def knowledge_items(self) -> list[KnowledgeItem]:
        return list(self._knowledge.values())

    def lookup_task_by_id(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def lookup_note_by_id(self, note_id: str) -> Note | None:
        return self._notes.get(note_id)

    def lookup_event_by_id(self, event_id: str) -> CalendarEvent | None:
        return self._events.get(event_id)

    def snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(
            tasks=self.tasks,
            notes=self.notes,
            events=self.events,
            knowledge_items=self.knowledge_items,
        )

    def stats(self, *, today: date | None = None) -> dict[str, Any]:
        """Counts and progress analytics, as persisted."""
        return get_stats(self.conn, today=today)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def create_task(
        self,
        *,
        title: str,
        priority: str = "medium",
        notes: str = "",
        due_date: date | None = None,
        completed: bool = False,
    ) -> Task:
        task = Task(
            id=new_id(),
            title=title,
            completed=completed,
            priority=priority,
            due_date=due_date,
            notes=notes,
        )
        self._tasks[task.id] = task
        self._persist(f"save task {task.id}", save_task, task)
        return task

    def update_task(self, task: Task) -> None:
        self._tasks[task.id] = task
        self._persist(f"save task {task.id}", save_task, task)

    def delete_task(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        self._persist(f"delete task {task_id}", delete_task, task_id)

    def toggle_task_completion(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        toggled = replace(task, completed=not task.completed)
        self.update_task(toggled)
        return toggled

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    def create_note(self, *, title: str, content: str = "", tags: list[str] | None = None) -> Note:
        note = Note(id=new_id(), title=title, content=content, tags=list(tags or []))
        self._notes[note.id] = note
        self._persist(f"save note {note.id}", save_note, note)
        return note

    def update_note(self, note: Note) -> None:
        self._notes[note.id] = note
        self._persist(f"save note {note.id}", save_note, note)

    def delete_note(self, note_id: str) -> None:
        self._notes.pop(note_id, None)
        self._persist(f"delete note {note_id}", delete_note, note_id)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def create_event(
        self,
        *,
        title: str,
        start: datetime,
        end: datetime,
        category: str = "General",
        notes: str = "",
        all_day: bool = False,
    ) -> CalendarEvent:
        event = CalendarEvent(
            id=new_id(),
            title=title,
            start=start,
            end=end,
            all_day=all_day,
            notes=notes,
            category=category,
        )
        self._events[event.id] = event
        self._persist(
            f"save event {event.id}", save_event, event, settle=self._settle_event(event.id, event)
        )
        return event

    def update_event(self, event: CalendarEvent) -> None:
        self._events[event.id] = event
        self._persist(
            f"save event {event.id}", save_event, event, settle=self._settle_event(event.id, event)
        )

    def delete_event(self, event_id: str) -> None:
        self._events.pop(event_id, None)
        self._persist(
            f"delete event {event_id}",
            delete_event,
            event_id,
            settle=self._settle_event(event_id, None),
        )

    async def refresh_events(self) -> None:
        """
        Re-read events from the database, after pending writes land.

        Changes whose writes failed stay applied over the re-read rows.
        """
        await self.flush()
        try:
            events = get_all_events(self.conn)
        except sqlite3.Error as e:
            logger.warning("Error refreshing events: %s", e)
            return
        refreshed = {e.id: e for e in events}
        for event_id, local in self._unsynced_events.items():
            if local is None:
                refreshed.pop(event_id, None)
            else:
                refreshed[event_id] = local
        self._events = refreshed

    def _settle_event(self, event_id: str, local: CalendarEvent | None) -> Callable[[bool], None]:
        def settle(ok: bool) -> None:
            if ok:
                self._unsynced_events.pop(event_id, None)
            else:
                self._unsynced_events[event_id] = local

        return settle

    # -------------------------------------------------------------------------
    # Knowledge base
    # -------------------------------------------------------------------------

    def add_knowledge_item(
        self,
        *,
        title: str,
        content: str,
        category: str = "General",
        tags: list[str] | None = None,
    ) -> KnowledgeItem:
        item = KnowledgeItem(
            id=new_id(),
            title=title,
            content=content,
            category=category,
            tags=list(tags or []),
        )
        self._knowledge[item.id] = item
        self._persist(f"save knowledge item {item.id}", save_knowledge_item, item)
        return item

    def update_knowledge_item(self, item: KnowledgeItem) -> None:
        self._knowledge[item.id] = item
        self._persist(f"save knowledge item {item.id}", save_knowledge_item, item)

    def delete_knowledge_item(self, item_id: str) -> None:
        self._knowledge.pop(item_id, None)
        self._persist(f"delete knowledge item {item_id}", delete_knowledge_item, item_id)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def flush(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _persist(
        self,
        action: str,
        fn: Callable[..., Any],
        *args: Any,
        settle: Callable[[bool], None] | None = None,
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(action, fn, *args, settle=settle)
            return

        task = loop.create_task(self._write_later(action, fn, *args, settle=settle))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_later(self, action: str, fn: Callable[..., Any], *args: Any, settle=None) -> None:
        self._write(action, fn, *args, settle=settle)

    def _write(self, action: str, fn: Callable[..., Any], *args: Any, settle=None) -> None:
        try:
            fn(self.conn, *args)
        except (sqlite3.Error, StorageError) as e:
            logger.warning("Failed to %s: %s", action, e)
            if settle is not None:
                settle(False)
            if self.on_error is not None:
                self.on_error(action, e)
            return
        if settle is not None:
            settle(True)
