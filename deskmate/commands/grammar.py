"""
Directive grammar registry.

Each directive kind owns exactly one token shape:

    verbNoun[primary]:field1:field2:...      (tasks, notes, events)
    KB{content:tag}                          (knowledge capture)

A line is matched as a whole (after trimming), so a token with a missing
bracket or trailing prose is simply not a directive. Adding a new kind
means registering one more TokenShape here and one more handler in the
dispatcher; existing shapes are never touched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .params import (
    DEFAULT_KB_TAG,
    KB_CATEGORY,
    Clock,
    field_at,
    knowledge_title,
    optional,
    parse_category,
    parse_completed,
    parse_date,
    parse_datetime,
    parse_priority,
    parse_tags,
    remainder,
    resolve_event_window,
    split_fields,
    system_clock,
)
from .responses import describe
from .types import (
    AddKnowledgeItem,
    Command,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    Matched,
    ParseOutcome,
    Unmatched,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
)

Builder = Callable[[re.Match, datetime], Command]


@dataclass(frozen=True)
class TokenShape:
    """One directive shape: its kind, its regex and how to build the command."""

    kind: str
    pattern: re.Pattern
    build: Builder
    usage: str = ""


def bracket_shape(verb: str) -> re.Pattern:
    """``verb[primary]`` optionally followed by ``:args``."""
    return re.compile(rf"{verb}\[(?P<primary>[^\[\]]+)\](?::(?P<args>.*))?")


def bare_shape(verb: str) -> re.Pattern:
    """``verb[primary]`` with nothing after it."""
    return re.compile(rf"{verb}\[(?P<primary>[^\[\]]+)\]")


KB_PATTERN = re.compile(r"KB\{(?P<content>[^{}]+?)(?::(?P<tag>[^:{}]*))?\}")


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def _primary(match: re.Match) -> str:
    return match.group("primary").strip()


def build_create_task(match: re.Match, now: datetime) -> CreateTask:
    fields = split_fields(match.group("args"))
    return CreateTask(
        title=_primary(match),
        priority=parse_priority(field_at(fields, 0)),
        notes=field_at(fields, 1),
        due_date=parse_date(field_at(fields, 2)),
    )


def build_create_note(match: re.Match, now: datetime) -> CreateNote:
    fields = split_fields(match.group("args"))
    return CreateNote(
        title=_primary(match),
        content=field_at(fields, 0),
        tags=parse_tags(field_at(fields, 1)),
    )


def build_create_event(match: re.Match, now: datetime) -> CreateEvent:
    fields = split_fields(match.group("args"))
    start, end = resolve_event_window(
        parse_datetime(field_at(fields, 0)),
        parse_datetime(field_at(fields, 1)),
        now,
    )
    return CreateEvent(
        title=_primary(match),
        start=start,
        end=end,
        category=parse_category(field_at(fields, 2)),
        notes=remainder(match.group("args"), 3),
    )


def build_update_task(match: re.Match, now: datetime) -> UpdateTask:
    fields = split_fields(match.group("args"))
    return UpdateTask(
        id=_primary(match),
        title=optional(field_at(fields, 0)),
        priority=parse_priority(field_at(fields, 1), default=None),
        notes=optional(field_at(fields, 2)),
        completed=parse_completed(field_at(fields, 3)),
        due_date=parse_date(field_at(fields, 4)),
    )


def build_update_note(match: re.Match, now: datetime) -> UpdateNote:
    fields = split_fields(match.group("args"))
    return UpdateNote(
        id=_primary(match),
        title=optional(field_at(fields, 0)),
        content=optional(field_at(fields, 1)),
        tags=parse_tags(field_at(fields, 2)) or None,
    )


def build_update_event(match: re.Match, now: datetime) -> UpdateEvent:
    fields = split_fields(match.group("args"))
    return UpdateEvent(
        id=_primary(match),
        title=optional(field_at(fields, 0)),
        start=parse_datetime(field_at(fields, 1)),
        end=parse_datetime(field_at(fields, 2)),
        notes=optional(field_at(fields, 3)),
        category=parse_category(field_at(fields, 4), default=None),
    )


def build_delete_task(match: re.Match, now: datetime) -> DeleteTask:
    return DeleteTask(id=_primary(match))


def build_delete_note(match: re.Match, now: datetime) -> DeleteNote:
    return DeleteNote(id=_primary(match))


def build_delete_event(match: re.Match, now: datetime) -> DeleteEvent:
    return DeleteEvent(id=_primary(match))


def build_knowledge_item(match: re.Match, now: datetime) -> AddKnowledgeItem:
    content = match.group("content").strip()
    tag = (match.group("tag") or "").strip() or DEFAULT_KB_TAG
    return AddKnowledgeItem(
        title=knowledge_title(content),
        content=content,
        category=KB_CATEGORY,
        tags=[tag],
    )


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


class GrammarRegistry:
    """The set of recognized directive shapes, tried in registration order."""

    def __init__(self, shapes: list[TokenShape] | None = None):
        self._shapes: dict[str, TokenShape] = {}
        for shape in shapes or []:
            self.register(shape)

    def register(self, shape: TokenShape) -> None:
        if shape.kind in self._shapes:
            raise ValueError(f"Directive kind already registered: {shape.kind}")
        self._shapes[shape.kind] = shape

    @property
    def kinds(self) -> list[str]:
        return list(self._shapes)

    @property
    def shapes(self) -> list[TokenShape]:
        return list(self._shapes.values())

    def match(self, line: str, *, clock: Clock = system_clock) -> ParseOutcome:
        """Match one line against every shape. The whole trimmed line must fit."""
        text = line.strip()
        for shape in self._shapes.values():
            m = shape.pattern.fullmatch(text)
            if m is None:
                continue
            command = shape.build(m, clock())
            return Matched(command=command, confirmation=describe(command), line=line)
        return Unmatched(line=line)

    def find(self, text: str) -> list[str]:
        """Every directive token embedded anywhere in ``text``, in order."""
        found: list[tuple[int, str]] = []
        for shape in self._shapes.values():
            for m in shape.pattern.finditer(text):
                found.append((m.start(), m.group(0)))
        found.sort()
        return [token for _, token in found]


DEFAULT_SHAPES = [
    TokenShape(
        "createTask",
        bracket_shape("createTask"),
        build_create_task,
        "createTask[Task Title]:priority:notes:YYYY-MM-DD",
    ),
    TokenShape(
        "createNote",
        bracket_shape("createNote"),
        build_create_note,
        "createNote[Note Title]:content:tag1,tag2",
    ),
    TokenShape(
        "createEvent",
        bracket_shape("createEvent"),
        build_create_event,
        "createEvent[Event Title]:YYYY-MM-DD HH:MM:YYYY-MM-DD HH:MM:Category:Notes",
    ),
    TokenShape(
        "updateTask",
        bracket_shape("updateTask"),
        build_update_task,
        "updateTask[taskId]:newTitle:newPriority:newNotes:completed(true/false):newDueDate(YYYY-MM-DD)",
    ),
    TokenShape(
        "updateNote",
        bracket_shape("updateNote"),
        build_update_note,
        "updateNote[noteId]:newTitle:newContent:newTag1,newTag2",
    ),
    TokenShape(
        "updateEvent",
        bracket_shape("updateEvent"),
        build_update_event,
        "updateEvent[eventId]:newTitle:newStart(YYYY-MM-DD HH:MM):newEnd(YYYY-MM-DD HH:MM):newNotes:newCategory",
    ),
    TokenShape("deleteTask", bare_shape("deleteTask"), build_delete_task, "deleteTask[taskId]"),
    TokenShape("deleteNote", bare_shape("deleteNote"), build_delete_note, "deleteNote[noteId]"),
    TokenShape("deleteEvent", bare_shape("deleteEvent"), build_delete_event, "deleteEvent[eventId]"),
    TokenShape("addKnowledgeItem", KB_PATTERN, build_knowledge_item, "KB{information:tag}"),
]


def default_registry() -> GrammarRegistry:
    """A fresh registry holding the built-in directive shapes."""
    return GrammarRegistry(DEFAULT_SHAPES)


def parse_line(line: str, *, clock: Clock = system_clock) -> ParseOutcome:
    """Match one line against the built-in shapes."""
    return _BUILTIN.match(line, clock=clock)


def find_directives(text: str) -> list[str]:
    return _BUILTIN.find(text)


_BUILTIN = default_registry()
