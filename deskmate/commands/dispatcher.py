"""
Action dispatcher - applies parsed commands to the workspace store.

One handler per command variant:

    Create*           -> store allocates the entity (ids come from the store)
    Update*           -> look up by id, merge supplied fields, write back
    Delete*           -> unconditional delete, no existence check
    AddKnowledgeItem  -> always succeeds

An update that names an unknown id fails with "not found" and touches
nothing. After an event update or delete the store is asked to refresh
its events in the background; the dispatcher does not wait for it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Awaitable, Callable

from .params import knowledge_title
from .responses import NOT_FOUND, friendly_response
from .types import (
    AddKnowledgeItem,
    Applied,
    Command,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    ExecutionResult,
    Failed,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
    WorkspaceStoreLike,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[ExecutionResult]]


class Dispatcher:
    """Executes commands against one workspace store."""

    def __init__(self, store: WorkspaceStoreLike):
        self.store = store
        self._background: set[asyncio.Task] = set()
        self._handlers: dict[type, Handler] = {
            CreateTask: self._create_task,
            CreateNote: self._create_note,
            CreateEvent: self._create_event,
            UpdateTask: self._update_task,
            UpdateNote: self._update_note,
            UpdateEvent: self._update_event,
            DeleteTask: self._delete_task,
            DeleteNote: self._delete_note,
            DeleteEvent: self._delete_event,
            AddKnowledgeItem: self._add_knowledge_item,
        }

    @property
    def handled_kinds(self) -> list[str]:
        return [command_type.kind for command_type in self._handlers]

    def register(self, command_type: type, handler: Handler) -> None:
        """Add a handler for a new command type."""
        self._handlers[command_type] = handler

    async def dispatch(self, command: Command) -> ExecutionResult:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValueError(f"Unknown command: {type(command).__name__}")
        return await handler(command)

    async def drain(self) -> None:
        """Wait for background refreshes started by earlier commands."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def _create_task(self, command: CreateTask) -> ExecutionResult:
        task = self.store.create_task(
            title=command.title,
            priority=command.priority,
            notes=command.notes,
            due_date=command.due_date,
        )
        logger.debug("Created task %s", task.id)
        return Applied(friendly_response(command))

    async def _update_task(self, command: UpdateTask) -> ExecutionResult:
        task = self.store.lookup_task_by_id(command.id)
        if task is None:
            return Failed(NOT_FOUND, friendly_response(command, success=False))

        self.store.update_task(
            replace(
                task,
                title=command.title or task.title,
                priority=command.priority or task.priority,
                notes=command.notes if command.notes is not None else task.notes,
                completed=command.completed,
                due_date=command.due_date or task.due_date,
            )
        )
        return Applied(friendly_response(command))

    async def _delete_task(self, command: DeleteTask) -> ExecutionResult:
        self.store.delete_task(command.id)
        return Applied(friendly_response(command))

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    async def _create_note(self, command: CreateNote) -> ExecutionResult:
        note = self.store.create_note(
            title=command.title,
            content=command.content,
            tags=list(command.tags),
        )
        logger.debug("Created note %s", note.id)
        return Applied(friendly_response(command))

    async def _update_note(self, command: UpdateNote) -> ExecutionResult:
        note = self.store.lookup_note_by_id(command.id)
        if note is None:
            return Failed(NOT_FOUND, friendly_response(command, success=False))

        self.store.update_note(
            replace(
                note,
                title=command.title or note.title,
                content=command.content if command.content is not None else note.content,
                tags=list(command.tags) if command.tags is not None else note.tags,
                updated_at=datetime.now(),
            )
        )
        return Applied(friendly_response(command))

    async def _delete_note(self, command: DeleteNote) -> ExecutionResult:
        self.store.delete_note(command.id)
        return Applied(friendly_response(command))

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def _create_event(self, command: CreateEvent) -> ExecutionResult:
        event = self.store.create_event(
            title=command.title,
            start=command.start,
            end=command.end,
            category=command.category,
            notes=command.notes,
        )
        logger.debug("Created event %s", event.id)
        return Applied(friendly_response(command))

    async def _update_event(self, command: UpdateEvent) -> ExecutionResult:
        event = self.store.lookup_event_by_id(command.id)
        if event is None:
            return Failed(NOT_FOUND, friendly_response(command, success=False))

        self.store.update_event(
            replace(
                event,
                title=command.title or event.title,
                start=command.start or event.start,
                end=command.end or event.end,
                notes=command.notes if command.notes is not None else event.notes,
                category=command.category or event.category,
            )
        )
        self._refresh_events()
        return Applied(friendly_response(command))

    async def _delete_event(self, command: DeleteEvent) -> ExecutionResult:
        self.store.delete_event(command.id)
        self._refresh_events()
        return Applied(friendly_response(command))

    # -------------------------------------------------------------------------
    # Knowledge base
    # -------------------------------------------------------------------------

    async def _add_knowledge_item(self, command: AddKnowledgeItem) -> ExecutionResult:
        self.store.add_knowledge_item(
            title=command.title or knowledge_title(command.content),
            content=command.content,
            category=command.category,
            tags=list(command.tags),
        )
        return Applied(friendly_response(command))

    # -------------------------------------------------------------------------
    # Background refresh
    # -------------------------------------------------------------------------

    def _refresh_events(self) -> None:
        task = asyncio.get_running_loop().create_task(self.store.refresh_events())
        self._background.add(task)
        task.add_done_callback(self._refresh_done)

    def _refresh_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Error refreshing events: %s", task.exception())
