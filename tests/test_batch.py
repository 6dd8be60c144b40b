from deskmate.commands import Applied, Failed, Matched, Unmatched, process_reply
from deskmate.commands.batch import split_reply
from deskmate.storage import WorkspaceStore, init_db
from tests.conftest import FIXED_NOW, run

THREE_LINES = """createTask[Morning standup]:high:Daily team update:2025-05-15
createEvent[Client Meeting]:2025-05-15 10:00:2025-05-15 11:00:Work:Discuss new project requirements
createTask[Send follow-up email]:medium:Summarize meeting points:2025-05-15"""


def process(text, store):
    return run(process_reply(text, store, clock=lambda: FIXED_NOW))


def test_three_directives_in_order(store):
    result = process(THREE_LINES, store)

    assert len(result) == 3
    assert all(isinstance(entry.outcome, Matched) for entry in result)
    assert [entry.outcome.command.kind for entry in result] == [
        "createTask",
        "createEvent",
        "createTask",
    ]
    assert all(isinstance(entry.result, Applied) for entry in result)
    assert result.message == "I've processed your request."
    assert [t.title for t in store.tasks] == ["Morning standup", "Send follow-up email"]
    assert store.events[0].title == "Client Meeting"


def test_plain_reply_is_shown_verbatim(store):
    reply = "You have no meetings tomorrow.\nEnjoy the free day!"
    result = process(reply, store)

    assert result.message == reply
    assert not result.any_matched
    assert all(isinstance(entry.outcome, Unmatched) for entry in result)
    assert result.notices == []
    assert store.tasks == []


def test_blank_lines_are_dropped():
    assert split_reply("a\n\n   \nb\n") == ["a", "b"]


def test_prose_lines_around_directives(store):
    reply = "Sure, here you go:\n\ncreateNote[Groceries]:eggs, milk:home\nLet me know!"
    result = process(reply, store)

    assert len(result) == 3
    assert [entry.matched for entry in result] == [False, True, False]
    assert result.message == "I've processed your request."
    assert [n.title for n in result.notices] == ["Note Created"]


def test_not_found_does_not_stop_the_batch(store):
    reply = "updateTask[unknown-id]:NewTitle\ncreateTask[Buy milk]:high"
    result = process(reply, store)

    assert isinstance(result[0].result, Failed)
    assert result[0].result.reason == "not found"
    assert isinstance(result[1].result, Applied)
    assert result.failed_count == 1
    assert result.applied_count == 1
    assert result.notices[0].title == "Task Not Found"
    assert result.notices[0].error is True
    assert result.notices[1].title == "Task Created"


class ExplodingStore(WorkspaceStore):
    def create_task(self, **kwargs):
        raise RuntimeError("disk full")


def test_store_exception_is_isolated_to_its_line():
    store = ExplodingStore(init_db(":memory:"))
    reply = "createTask[Buy milk]:high\ncreateNote[Shopping]:milk\nKB{Likes oat milk:preferences}"

    result = process(reply, store)

    assert isinstance(result[0].result, Failed)
    assert result[0].result.reason == "disk full"
    assert result[0].result.message == "Failed to process the requested action: disk full"
    assert isinstance(result[1].result, Applied)
    assert isinstance(result[2].result, Applied)
    assert result.notices[0].title == "Action Error"
    assert len(store.notes) == 1
    assert len(store.knowledge_items) == 1


def test_later_line_can_use_item_from_earlier_line(store):
    task = store.create_task(title="Draft")

    result = process(f"updateTask[{task.id}]:Final:::true\ndeleteTask[{task.id}]", store)

    assert result.applied_count == 2
    assert store.lookup_task_by_id(task.id) is None


def test_result_serializes(store):
    data = process("createTask[Buy milk]:high\nhello", store).to_dict()

    assert data["applied"] == 1
    assert data["failed"] == 0
    assert data["entries"][0]["kind"] == "createTask"
    assert data["entries"][0]["status"] == "applied"
    assert data["entries"][1] == {"line": "hello", "matched": False}
