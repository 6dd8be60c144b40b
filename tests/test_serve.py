import json

from deskmate.commands import Dispatcher
from deskmate.serve import create_server, handle_tool
from tests.conftest import run


def call(store, name, **arguments):
    return run(handle_tool(store, Dispatcher(store), name, arguments))


def test_apply_directives_tool(store):
    text = call(store, "apply_directives", text="createTask[Buy milk]:high\nthanks!")

    assert text.splitlines()[0] == "I've processed your request."
    assert '[OK] I\'ve added the task "Buy milk" to your list with high priority.' in text
    assert "[SKIP] thanks!" in text
    assert store.tasks[0].title == "Buy milk"


def test_apply_directives_requires_text(store):
    assert call(store, "apply_directives", text="") == "Error: text is required"


def test_workspace_tool_lists_ids(store):
    task = store.create_task(title="Buy milk")

    everything = json.loads(call(store, "workspace"))
    tasks_only = json.loads(call(store, "workspace", kind="tasks"))

    assert everything["tasks"][0]["id"] == task.id
    assert list(tasks_only) == ["tasks"]
    assert call(store, "workspace", kind="recipes") == "Error: unknown kind: recipes"


def test_directives_tool_lists_grammar(store):
    text = call(store, "directives")
    assert "createTask[Task Title]:priority:notes:YYYY-MM-DD" in text
    assert "KB{information:tag}" in text


def test_stats_tool(store):
    store.create_note(title="A")
    assert json.loads(call(store, "stats"))["total_notes"] == 1


def test_unknown_tool(store):
    assert call(store, "recall") == "Unknown tool: recall"


def test_create_server_is_lazy(tmp_path):
    path = tmp_path / "workspace.db"
    server = create_server(str(path))
    assert server.name == "deskmate"
    assert not path.exists()


def test_apply_directives_reports_inline_tokens(store):
    text = call(store, "apply_directives", text="Sure, I'll add createTask[Buy milk]:high for you")

    assert "[SKIP] Sure, I'll add createTask[Buy milk]:high for you" in text
    assert "ignored createTask[Buy milk]" in text
    assert store.tasks == []
