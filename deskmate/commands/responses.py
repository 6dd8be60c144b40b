"""
Friendly responses.

Human-readable text for directives, so the user never sees the raw token
syntax. Everything here is pure: it only echoes values already present on
the command and never looks at the workspace.
"""

from __future__ import annotations

from .types import (
    AddKnowledgeItem,
    Command,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    Notice,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
)

BATCH_ACKNOWLEDGEMENT = "I've processed your request."
NOT_FOUND = "not found"

_NOUNS = {
    UpdateTask: "task",
    UpdateNote: "note",
    UpdateEvent: "event",
    DeleteTask: "task",
    DeleteNote: "note",
    DeleteEvent: "event",
}


def describe(command: Command) -> str:
    """What the assistant is about to do, phrased before execution."""
    if isinstance(command, CreateTask):
        return f'I\'ll create a task: "{command.title}"'
    if isinstance(command, CreateNote):
        return f'I\'ll create a note: "{command.title}"'
    if isinstance(command, CreateEvent):
        return f'I\'ll create an event: "{command.title}"'
    if isinstance(command, AddKnowledgeItem):
        return "I'll add this to your knowledge base"
    if isinstance(command, (UpdateTask, UpdateNote, UpdateEvent)):
        return f'I\'ll update {_NOUNS[type(command)]} "{command.id}"'
    if isinstance(command, (DeleteTask, DeleteNote, DeleteEvent)):
        return f'I\'ll delete {_NOUNS[type(command)]} "{command.id}"'
    raise TypeError(f"Unknown command: {command!r}")


def friendly_response(command: Command, success: bool = True, reason: str = NOT_FOUND) -> str:
    """Confirmation (or failure) sentence for an executed command."""
    if not success:
        if reason == NOT_FOUND and type(command) in _NOUNS:
            return f"Could not find {_NOUNS[type(command)]} with id {command.id}."
        return f"Failed to process the requested action: {reason}"

    if isinstance(command, CreateTask):
        suffix = f" with {command.priority} priority" if command.priority else ""
        return f'I\'ve added the task "{command.title}" to your list{suffix}.'
    if isinstance(command, CreateNote):
        return f'I\'ve created a note titled "{command.title}" for you.'
    if isinstance(command, CreateEvent):
        return f'I\'ve scheduled "{command.title}" on your calendar.'
    if isinstance(command, AddKnowledgeItem):
        return "I've added that information to your knowledge base."
    if isinstance(command, UpdateTask):
        return "I've updated the task as requested."
    if isinstance(command, UpdateNote):
        return "I've updated your note."
    if isinstance(command, UpdateEvent):
        return "I've updated the event on your calendar."
    if isinstance(command, DeleteTask):
        return "I've removed that task from your list."
    if isinstance(command, DeleteNote):
        return "I've deleted the note as requested."
    if isinstance(command, DeleteEvent):
        return "I've removed that event from your calendar."
    return BATCH_ACKNOWLEDGEMENT


def notice_for(command: Command, success: bool = True, reason: str = NOT_FOUND) -> Notice:
    """Toast-style title and description for one executed command."""
    if not success:
        if reason == NOT_FOUND and type(command) in _NOUNS:
            noun = _NOUNS[type(command)].capitalize()
            return Notice(
                title=f"{noun} Not Found",
                description=f"Could not find {noun.lower()} with ID: {command.id}",
                error=True,
            )
        return Notice(
            title="Action Error",
            description=f"Failed to process the requested action: {reason}",
            error=True,
        )

    if isinstance(command, CreateTask):
        return Notice("Task Created", f'Created task: "{command.title}"')
    if isinstance(command, CreateNote):
        return Notice("Note Created", f'Created note: "{command.title}"')
    if isinstance(command, CreateEvent):
        return Notice("Event Created", f'Created event: "{command.title}"')
    if isinstance(command, AddKnowledgeItem):
        return Notice("Knowledge Added", f'Added to knowledge base: "{command.title}"')
    if isinstance(command, (UpdateTask, UpdateNote, UpdateEvent)):
        noun = _NOUNS[type(command)]
        return Notice(f"{noun.capitalize()} Updated", f"Updated {noun} with ID: {command.id}")
    noun = _NOUNS[type(command)]
    return Notice(f"{noun.capitalize()} Deleted", f"Deleted {noun} with ID: {command.id}")
