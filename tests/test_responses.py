from datetime import datetime

import pytest

from deskmate.commands import (
    AddKnowledgeItem,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
    describe,
    friendly_response,
)
from deskmate.commands.responses import notice_for

EVENT = CreateEvent(
    title="Dentist",
    start=datetime(2025, 6, 2, 10, 0),
    end=datetime(2025, 6, 2, 11, 0),
)


@pytest.mark.parametrize(
    "command, expected",
    [
        (CreateTask(title="X", priority="high"), 'I\'ve added the task "X" to your list with high priority.'),
        (CreateNote(title="Ideas"), 'I\'ve created a note titled "Ideas" for you.'),
        (EVENT, 'I\'ve scheduled "Dentist" on your calendar.'),
        (AddKnowledgeItem(title="t", content="c"), "I've added that information to your knowledge base."),
        (UpdateTask(id="t1"), "I've updated the task as requested."),
        (UpdateNote(id="n1"), "I've updated your note."),
        (UpdateEvent(id="e1"), "I've updated the event on your calendar."),
        (DeleteTask(id="t1"), "I've removed that task from your list."),
        (DeleteNote(id="n1"), "I've deleted the note as requested."),
        (DeleteEvent(id="e1"), "I've removed that event from your calendar."),
    ],
)
def test_success_messages(command, expected):
    assert friendly_response(command) == expected


def test_not_found_message():
    assert friendly_response(UpdateTask(id="Y"), success=False) == "Could not find task with id Y."
    assert friendly_response(UpdateEvent(id="e9"), success=False) == "Could not find event with id e9."


def test_other_failure_message():
    message = friendly_response(CreateTask(title="X"), success=False, reason="disk full")
    assert message == "Failed to process the requested action: disk full"


def test_describe():
    assert describe(CreateTask(title="X")) == 'I\'ll create a task: "X"'
    assert describe(EVENT) == 'I\'ll create an event: "Dentist"'
    assert describe(DeleteNote(id="n1")) == 'I\'ll delete note "n1"'


def test_describe_rejects_unknown_objects():
    with pytest.raises(TypeError):
        describe("createTask[X]")


def test_notices():
    assert notice_for(CreateTask(title="X")).title == "Task Created"
    assert notice_for(UpdateNote(id="n1")).title == "Note Updated"
    assert notice_for(DeleteEvent(id="e1")).title == "Event Deleted"

    missing = notice_for(UpdateTask(id="t1"), success=False, reason="not found")
    assert missing.title == "Task Not Found"
    assert missing.description == "Could not find task with ID: t1"
    assert missing.error is True
