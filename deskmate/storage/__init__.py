"""
Deskmate storage layer.

All SQL operations are encapsulated here. No other module should
contain SQL strings or direct database operations.

The workspace holds four collections:
- TASKS: to-do items with priority, notes and an optional due date
- NOTES: free-form notes with tags
- EVENTS: calendar entries with a category
- KNOWLEDGE: durable facts about the user captured by the assistant

Usage:
    from deskmate.storage import WorkspaceStore

    store = WorkspaceStore.open("workspace.db")
    task = store.create_task(title="Buy milk", priority="high")
    store.lookup_task_by_id(task.id)
"""

from .connection import init_db
from .events import CATEGORIES, CalendarEvent, get_all_events
from .knowledge import KnowledgeItem, get_all_knowledge_items
from .metadata import get_all_metadata, get_stats, set_metadata
from .notes import Note, get_all_notes
from .schema import StorageError
from .tasks import PRIORITIES, Task, get_all_tasks, get_task
from .workspace import WorkspaceSnapshot, WorkspaceStore, new_id

__all__ = [
    # Connection
    "init_db",
    # Entities
    "Task",
    "Note",
    "CalendarEvent",
    "KnowledgeItem",
    "PRIORITIES",
    "CATEGORIES",
    # Row access
    "get_task",
    "get_all_tasks",
    "get_all_notes",
    "get_all_events",
    "get_all_knowledge_items",
    # Metadata
    "set_metadata",
    "get_all_metadata",
    "get_stats",
    # Store
    "WorkspaceStore",
    "WorkspaceSnapshot",
    "new_id",
    # Exceptions
    "StorageError",
]
