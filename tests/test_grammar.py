from datetime import date, datetime

import pytest

from deskmate.commands import (
    AddKnowledgeItem,
    CreateEvent,
    CreateNote,
    CreateTask,
    DeleteEvent,
    DeleteNote,
    DeleteTask,
    GrammarRegistry,
    Matched,
    TokenShape,
    Unmatched,
    UpdateEvent,
    UpdateNote,
    UpdateTask,
    default_registry,
    find_directives,
    parse_line,
)
from deskmate.commands.grammar import bare_shape, build_delete_task
from tests.conftest import FIXED_NOW


def parse(line):
    outcome = parse_line(line, clock=lambda: FIXED_NOW)
    assert isinstance(outcome, Matched), f"expected a directive: {line!r}"
    return outcome.command


# -----------------------------------------------------------------------------
# Every shape parses its documented example
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line, expected",
    [
        (
            "createTask[Complete project report]:high:Need to finish by Friday:2025-05-15",
            CreateTask(
                title="Complete project report",
                priority="high",
                notes="Need to finish by Friday",
                due_date=date(2025, 5, 15),
            ),
        ),
        (
            "createNote[Meeting Notes]:Points discussed in the team meeting:meeting,team",
            CreateNote(
                title="Meeting Notes",
                content="Points discussed in the team meeting",
                tags=["meeting", "team"],
            ),
        ),
        (
            "createEvent[Team Meeting]:2025-05-15 14:00:2025-05-15 15:00:Work:Weekly standup",
            CreateEvent(
                title="Team Meeting",
                start=datetime(2025, 5, 15, 14, 0),
                end=datetime(2025, 5, 15, 15, 0),
                category="Work",
                notes="Weekly standup",
            ),
        ),
        (
            "updateTask[task123]:Updated report title:high:New notes:false:2025-05-20",
            UpdateTask(
                id="task123",
                title="Updated report title",
                priority="high",
                notes="New notes",
                completed=False,
                due_date=date(2025, 5, 20),
            ),
        ),
        (
            "updateNote[note123]:Updated Meeting Notes:New content:meeting,updated",
            UpdateNote(
                id="note123",
                title="Updated Meeting Notes",
                content="New content",
                tags=["meeting", "updated"],
            ),
        ),
        (
            "updateEvent[event123]:Updated Meeting:2025-05-16 13:00:2025-05-16 14:00:Discuss project timeline:Work",
            UpdateEvent(
                id="event123",
                title="Updated Meeting",
                start=datetime(2025, 5, 16, 13, 0),
                end=datetime(2025, 5, 16, 14, 0),
                notes="Discuss project timeline",
                category="Work",
            ),
        ),
        ("deleteTask[task123]", DeleteTask(id="task123")),
        ("deleteNote[note123]", DeleteNote(id="note123")),
        ("deleteEvent[event123]", DeleteEvent(id="event123")),
        (
            "KB{Likes oat milk:preferences}",
            AddKnowledgeItem(
                title="Knowledge: Likes oat milk...",
                content="Likes oat milk",
                category="Personal",
                tags=["preferences"],
            ),
        ),
    ],
)
def test_documented_examples_parse(line, expected):
    assert parse(line) == expected


def test_confirmation_text_is_attached():
    outcome = parse_line("createTask[Buy milk]:high")
    assert outcome.confirmation == 'I\'ll create a task: "Buy milk"'
    assert outcome.line == "createTask[Buy milk]:high"


# -----------------------------------------------------------------------------
# Event defaults
# -----------------------------------------------------------------------------


def test_event_with_bare_date_defaults_to_nine_for_one_hour():
    cmd = parse("createEvent[Standup]:2025-06-01:::")
    assert cmd.start == datetime(2025, 6, 1, 9, 0)
    assert cmd.end == datetime(2025, 6, 1, 10, 0)
    assert cmd.category == "General"
    assert cmd.notes == ""


def test_event_midnight_times_become_working_hours():
    cmd = parse("createEvent[Standup]:2025-06-01 00:00:2025-06-02:Work:")
    assert cmd.start == datetime(2025, 6, 1, 9, 0)
    assert cmd.end == datetime(2025, 6, 2, 17, 0)
    assert cmd.category == "Work"


def test_event_without_arguments_starts_now():
    cmd = parse("createEvent[Call mum]")
    assert cmd.start == datetime(2025, 6, 1, 14, 37)
    assert cmd.end == datetime(2025, 6, 1, 15, 37)


def test_event_notes_keep_their_colons():
    cmd = parse("createEvent[Review]:2025-06-01 10:00:2025-06-01 11:00:Work:Agenda:budget")
    assert cmd.notes == "Agenda:budget"


def test_event_notes_keep_spacing_around_colons():
    cmd = parse(
        "createEvent[Standup]:2025-06-01 10:00:2025-06-01 11:00:Work:Agenda: item one : item two"
    )
    assert cmd.notes == "Agenda: item one : item two"
    assert cmd.category == "Work"


def test_parsing_is_deterministic_with_fixed_clock():
    line = "createEvent[Call]:::Health:bring notes"
    assert parse(line) == parse(line)


# -----------------------------------------------------------------------------
# Field defaults
# -----------------------------------------------------------------------------


def test_task_without_fields_gets_medium_priority():
    assert parse("createTask[Water plants]") == CreateTask(title="Water plants", priority="medium")


def test_unknown_priority_falls_back_to_default():
    assert parse("createTask[Water plants]:urgent").priority == "medium"


def test_update_task_completed_is_case_insensitive():
    assert parse("updateTask[t1]::::TRUE").completed is True
    assert parse("updateTask[t1]::::yes").completed is False


def test_update_with_empty_fields_leaves_them_unset():
    cmd = parse("updateTask[t1]:New title")
    assert cmd == UpdateTask(id="t1", title="New title")


def test_update_event_ignores_unknown_category():
    assert parse("updateEvent[e1]:::::Leisure").category is None


def test_unparseable_due_date_is_dropped():
    assert parse("createTask[Pay rent]:high::next friday").due_date is None


# -----------------------------------------------------------------------------
# Knowledge capture
# -----------------------------------------------------------------------------


def test_knowledge_without_tag_uses_general():
    cmd = parse("KB{Allergic to peanuts}")
    assert cmd.tags == ["general"]
    assert cmd.content == "Allergic to peanuts"


def test_knowledge_tag_is_text_after_last_colon():
    cmd = parse("KB{Standup time: 9:30 daily:routine}")
    assert cmd.content == "Standup time: 9:30 daily"
    assert cmd.tags == ["routine"]


def test_knowledge_title_truncates_long_content():
    content = "Prefers window seats on long haul flights"
    cmd = parse(f"KB{{{content}:travel}}")
    assert cmd.title == f"Knowledge: {content[:30]}..."


# -----------------------------------------------------------------------------
# Malformed tokens are prose
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line",
    [
        "createTask[Buy milk:high",
        "createTask[]:high",
        "Sure! createTask[Buy milk]:high",
        "deleteTask[t1]:extra",
        "KB{}",
        "Here is your plan for today.",
        "",
    ],
)
def test_malformed_lines_are_unmatched(line):
    assert isinstance(parse_line(line), Unmatched)


def test_surrounding_whitespace_is_ignored():
    assert parse("   deleteNote[n1]  ") == DeleteNote(id="n1")


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


def test_default_registry_kinds():
    assert default_registry().kinds == [
        "createTask",
        "createNote",
        "createEvent",
        "updateTask",
        "updateNote",
        "updateEvent",
        "deleteTask",
        "deleteNote",
        "deleteEvent",
        "addKnowledgeItem",
    ]


def test_registering_a_kind_twice_is_rejected():
    registry = default_registry()
    with pytest.raises(ValueError):
        registry.register(TokenShape("deleteTask", bare_shape("deleteTask"), build_delete_task))


def test_new_shape_can_be_registered():
    registry = GrammarRegistry()
    registry.register(TokenShape("removeTask", bare_shape("removeTask"), build_delete_task))
    outcome = registry.match("removeTask[t9]")
    assert isinstance(outcome, Matched)
    assert outcome.command == DeleteTask(id="t9")


def test_every_default_shape_documents_its_usage():
    assert all(shape.usage for shape in default_registry().shapes)


# -----------------------------------------------------------------------------
# Embedded tokens
# -----------------------------------------------------------------------------


def test_find_directives_in_prose():
    text = "Done! createTask[Buy milk]:high and KB{Likes oat milk:preferences} saved."
    found = find_directives(text)
    assert found[0].startswith("createTask[Buy milk]")
    assert found[1] == "KB{Likes oat milk:preferences}"
