"""
Deskmate Directive Engine.

Turns an assistant reply into workspace mutations. The assistant writes
directive tokens such as ``createTask[Buy milk]:high`` on their own lines;
everything else in the reply is ordinary prose.

Architecture:
    Reply Text → [Grammar] → Commands → [Dispatcher] → Workspace Store
                     ↑                        ↑
              (token shapes)          (one handler per kind)

Usage:
    from deskmate.commands import process_reply

    result = await process_reply(reply, store)
    print(result.message)
"""

from .batch import process_reply
from .dispatcher import Dispatcher
from .grammar import (
    GrammarRegistry,
    TokenShape,
    default_registry,
    find_directives,
    parse_line,
)
from .responses import describe, friendly_response
from .types import (
    AddKnowledgeItem,
    Applied,
    BatchEntry,
    BatchResult,
    Command,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    Failed,
    Matched,
    Notice,
    Unmatched,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
)

__all__ = [
    "process_reply",
    "Dispatcher",
    "GrammarRegistry",
    "TokenShape",
    "default_registry",
    "parse_line",
    "find_directives",
    "describe",
    "friendly_response",
    # Commands
    "Command",
    "CreateTask",
    "CreateNote",
    "CreateEvent",
    "UpdateTask",
    "UpdateNote",
    "UpdateEvent",
    "DeleteTask",
    "DeleteNote",
    "DeleteEvent",
    "AddKnowledgeItem",
    # Outcomes
    "Matched",
    "Unmatched",
    "Applied",
    "Failed",
    "Notice",
    "BatchEntry",
    "BatchResult",
]
