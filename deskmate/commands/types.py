"""
Command and outcome types for the directive engine.

A Command is the typed form of one directive line. It is created by the
parser, consumed once by the dispatcher and then discarded: commands are
never persisted or replayed. ``Command`` is a closed union; every variant
carries a ``kind`` matching the directive verb it was parsed from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import ClassVar, Protocol, Union

from deskmate.storage import CalendarEvent, KnowledgeItem, Note, Task


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CreateTask:
    kind: ClassVar[str] = "createTask"

    title: str
    priority: str = "medium"
    notes: str = ""
    due_date: date | None = None


@dataclass(frozen=True)
class CreateNote:
    kind: ClassVar[str] = "createNote"

    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CreateEvent:
    kind: ClassVar[str] = "createEvent"

    title: str
    start: datetime
    end: datetime
    category: str = "General"
    notes: str = ""


@dataclass(frozen=True)
class UpdateTask:
    """Fields left as None keep their stored value. ``completed`` is always applied."""

    kind: ClassVar[str] = "updateTask"

    id: str
    title: str | None = None
    priority: str | None = None
    notes: str | None = None
    completed: bool = False
    due_date: date | None = None


@dataclass(frozen=True)
class UpdateNote:
    kind: ClassVar[str] = "updateNote"

    id: str
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


@dataclass(frozen=True)
class UpdateEvent:
    kind: ClassVar[str] = "updateEvent"

    id: str
    title: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    notes: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class DeleteTask:
    kind: ClassVar[str] = "deleteTask"

    id: str


@dataclass(frozen=True)
class DeleteNote:
    kind: ClassVar[str] = "deleteNote"

    id: str


@dataclass(frozen=True)
class DeleteEvent:
    kind: ClassVar[str] = "deleteEvent"

    id: str


@dataclass(frozen=True)
class AddKnowledgeItem:
    kind: ClassVar[str] = "addKnowledgeItem"

    title: str
    content: str
    category: str = "Personal"
    tags: list[str] = field(default_factory=list)


Command = Union[
    CreateTask,
    CreateNote,
    CreateEvent,
    UpdateTask,
    UpdateNote,
    UpdateEvent,
    DeleteTask,
    DeleteNote,
    DeleteEvent,
    AddKnowledgeItem,
]


# -----------------------------------------------------------------------------
# Parse and execution outcomes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Matched:
    """A line that parsed into a command."""

    command: Command
    confirmation: str
    line: str


@dataclass(frozen=True)
class Unmatched:
    """A line that fits no directive shape; ordinary prose."""

    line: str


ParseOutcome = Union[Matched, Unmatched]


@dataclass(frozen=True)
class Applied:
    message: str


@dataclass(frozen=True)
class Failed:
    reason: str
    message: str = ""


ExecutionResult = Union[Applied, Failed]


@dataclass(frozen=True)
class Notice:
    """A per-action confirmation or error, shown as a toast or log entry."""

    title: str
    description: str
    error: bool = False


@dataclass
class BatchEntry:
    outcome: ParseOutcome
    result: ExecutionResult | None = None

    @property
    def matched(self) -> bool:
        return isinstance(self.outcome, Matched)

    def to_dict(self) -> dict:
        data: dict = {"line": self.outcome.line, "matched": self.matched}
        if isinstance(self.outcome, Matched):
            data["kind"] = self.outcome.command.kind
            data["confirmation"] = self.outcome.confirmation
        if isinstance(self.result, Applied):
            data["status"] = "applied"
            data["message"] = self.result.message
        elif isinstance(self.result, Failed):
            data["status"] = "failed"
            data["reason"] = self.result.reason
            data["message"] = self.result.message
        return data


@dataclass
class BatchResult:
    """Everything that happened to one assistant reply."""

    reply: str
    entries: list[BatchEntry] = field(default_factory=list)
    message: str = ""
    notices: list[Notice] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, index: int) -> BatchEntry:
        return self.entries[index]

    @property
    def any_matched(self) -> bool:
        return any(e.matched for e in self.entries)

    @property
    def applied_count(self) -> int:
        return sum(1 for e in self.entries if isinstance(e.result, Applied))

    @property
    def failed_count(self) -> int:
        return sum(1 for e in self.entries if isinstance(e.result, Failed))

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "entries": [e.to_dict() for e in self.entries],
            "notices": [
                {"title": n.title, "description": n.description, "error": n.error}
                for n in self.notices
            ],
            "applied": self.applied_count,
            "failed": self.failed_count,
        }


# -----------------------------------------------------------------------------
# Workspace store contract
# -----------------------------------------------------------------------------


class WorkspaceStoreLike(Protocol):
    """What the dispatcher needs from a workspace store."""

    def create_task(self, *, title: str, priority: str, notes: str, due_date: date | None) -> Task: ...
    def update_task(self, task: Task) -> None: ...
    def delete_task(self, task_id: str) -> None: ...
    def lookup_task_by_id(self, task_id: str) -> Task | None: ...

    def create_note(self, *, title: str, content: str, tags: list[str]) -> Note: ...
    def update_note(self, note: Note) -> None: ...
    def delete_note(self, note_id: str) -> None: ...
    def lookup_note_by_id(self, note_id: str) -> Note | None: ...

    def create_event(
        self, *, title: str, start: datetime, end: datetime, category: str, notes: str
    ) -> CalendarEvent: ...
    def update_event(self, event: CalendarEvent) -> None: ...
    def delete_event(self, event_id: str) -> None: ...
    def lookup_event_by_id(self, event_id: str) -> CalendarEvent | None: ...

    def add_knowledge_item(
        self, *, title: str, content: str, category: str, tags: list[str]
    ) -> KnowledgeItem: ...

    async def refresh_events(self) -> None: ...
