from datetime import date, datetime

import pytest

from deskmate.commands import process_reply
from deskmate.storage import (
    StorageError,
    Task,
    WorkspaceStore,
    get_all_events,
    get_all_metadata,
    get_stats,
    get_task,
    init_db,
    set_metadata,
)
from deskmate.storage.codec import decode_date, decode_tags
from deskmate.storage.tasks import save_task
from tests.conftest import run


class TestDatabase:
    def test_init_records_schema_version(self):
        conn = init_db(":memory:")
        assert get_all_metadata(conn)["schema_version"] == "1"

    def test_metadata_upsert(self):
        conn = init_db(":memory:")
        set_metadata(conn, "owner", "sam")
        set_metadata(conn, "owner", "alex")
        assert get_all_metadata(conn)["owner"] == "alex"

    def test_task_row_round_trip(self):
        conn = init_db(":memory:")
        task = Task(id="t1", title="Pay rent", priority="high", due_date=date(2025, 7, 1), notes="by transfer")
        save_task(conn, task)

        loaded = get_task(conn, "t1")
        assert loaded.title == "Pay rent"
        assert loaded.priority == "high"
        assert loaded.due_date == date(2025, 7, 1)
        assert loaded.completed is False

    def test_invalid_priority_is_refused(self):
        conn = init_db(":memory:")
        with pytest.raises(StorageError):
            save_task(conn, Task(id="t1", title="x", priority="urgent"))

    def test_init_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "workspace.db"
        init_db(str(path)).close()
        assert path.exists()


class TestStats:
    def test_progress_analytics(self):
        conn = init_db(":memory:")
        save_task(conn, Task(id="a", title="done early", completed=True, due_date=date(2025, 6, 10)))
        save_task(conn, Task(id="b", title="done late", completed=True, due_date=date(2025, 5, 1)))
        save_task(conn, Task(id="c", title="open", due_date=date(2025, 6, 10)))
        save_task(conn, Task(id="d", title="no deadline"))

        stats = get_stats(conn, today=date(2025, 6, 1))

        assert stats["total_tasks"] == 4
        assert stats["completed_tasks"] == 2
        assert stats["total_deadlines"] == 3
        assert stats["deadlines_met"] == 1
        assert stats["total_notes"] == 0


class TestWorkspaceStore:
    def test_contents_survive_reopen(self, tmp_path):
        path = str(tmp_path / "workspace.db")
        store = WorkspaceStore.open(path)
        store.create_task(title="Buy milk", priority="high")
        store.create_note(title="Ideas", tags=["misc"])
        store.create_event(title="Gym", start=datetime(2025, 6, 1, 18), end=datetime(2025, 6, 1, 19))
        store.add_knowledge_item(title="Knowledge: x...", content="x", tags=["general"])
        store.close()

        reopened = WorkspaceStore.open(path)
        assert [t.title for t in reopened.tasks] == ["Buy milk"]
        assert reopened.notes[0].tags == ["misc"]
        assert reopened.events[0].end == datetime(2025, 6, 1, 19)
        assert reopened.knowledge_items[0].content == "x"
        reopened.close()

    def test_writes_inside_loop_land_after_flush(self, store):
        async def scenario():
            task = store.create_task(title="Async")
            assert store.lookup_task_by_id(task.id) is task
            await store.flush()
            return task

        task = run(scenario())
        assert get_task(store.conn, task.id).title == "Async"

    def test_failed_write_is_reported_but_kept_in_memory(self):
        errors = []
        store = WorkspaceStore(init_db(":memory:"), on_error=lambda action, e: errors.append(action))

        task = store.create_task(title="Odd", priority="someday")

        assert store.lookup_task_by_id(task.id) is task
        assert errors == [f"save task {task.id}"]
        assert get_task(store.conn, task.id) is None

    def test_toggle_task_completion(self, store):
        task = store.create_task(title="Flip me")

        assert store.toggle_task_completion(task.id).completed is True
        assert store.toggle_task_completion(task.id).completed is False
        assert store.toggle_task_completion("missing") is None

    def test_knowledge_update_and_delete(self, store):
        item = store.add_knowledge_item(title="Knowledge: tea...", content="tea", tags=["drinks"])
        item.content = "green tea"
        store.update_knowledge_item(item)
        store.reload()
        assert store.knowledge_items[0].content == "green tea"

        store.delete_knowledge_item(item.id)
        store.reload()
        assert store.knowledge_items == []

    def test_refresh_events_rereads_database(self, store):
        event = store.create_event(title="Gym", start=datetime(2025, 6, 1, 18), end=datetime(2025, 6, 1, 19))
        store._events.clear()

        run(store.refresh_events())

        assert store.lookup_event_by_id(event.id).title == "Gym"

    def test_failed_event_write_survives_refresh(self):
        errors = []
        store = WorkspaceStore(init_db(":memory:"), on_error=lambda action, e: errors.append(action))
        store.conn.execute(
            "CREATE TRIGGER refuse_events BEFORE INSERT ON events "
            "BEGIN SELECT RAISE(ABORT, 'disk says no'); END"
        )

        async def scenario():
            await process_reply("createEvent[Standup]:2025-06-01 10:00", store)
            await store.refresh_events()

        run(scenario())

        [event] = store.events
        assert event.title == "Standup"
        assert errors == [f"save event {event.id}"]
        assert get_all_events(store.conn) == []

    def test_failed_event_delete_stays_deleted_after_refresh(self, store):
        event = store.create_event(title="Gym", start=datetime(2025, 6, 1, 18), end=datetime(2025, 6, 1, 19))
        store.conn.execute(
            "CREATE TRIGGER keep_events BEFORE DELETE ON events "
            "BEGIN SELECT RAISE(ABORT, 'disk says no'); END"
        )

        async def scenario():
            store.delete_event(event.id)
            await store.refresh_events()

        run(scenario())

        assert store.lookup_event_by_id(event.id) is None
        assert [e.id for e in get_all_events(store.conn)] == [event.id]

    def test_later_successful_write_clears_failed_event(self, store):
        event = store.create_event(
            title="Odd", start=datetime(2025, 6, 1, 9), end=datetime(2025, 6, 1, 10), category="Leisure"
        )
        event.category = "Work"
        event.title = "Fixed"
        store.update_event(event)
        store._events.clear()

        run(store.refresh_events())

        assert store.lookup_event_by_id(event.id).title == "Fixed"
        assert store._unsynced_events == {}


    def test_snapshot_context_shape(self, store):
        store.create_task(title="Buy milk", due_date=date(2025, 6, 2))
        context = store.snapshot().to_context()

        assert set(context) == {"tasks", "notes", "events", "knowledgeItems"}
        assert context["tasks"][0]["dueDate"] == "2025-06-02"
        assert context["tasks"][0]["priority"] == "medium"

    def test_stats_counts_store_contents(self, store):
        store.create_note(title="A")
        store.create_note(title="B")
        assert store.stats()["total_notes"] == 2


class TestCodec:
    def test_bad_tags_decode_to_empty(self):
        assert decode_tags("not json") == []
        assert decode_tags('{"a": 1}') == []
        assert decode_tags(None) == []

    def test_date_from_timestamp(self):
        assert decode_date("2025-06-01T10:00:00") == date(2025, 6, 1)
