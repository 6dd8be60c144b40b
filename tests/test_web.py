import pytest
from fastapi.testclient import TestClient

from deskmate import web
from deskmate.runtime import RuntimeConfig, set_global_config
from deskmate.storage import WorkspaceStore
from tests.conftest import FakeLLM


@pytest.fixture
def client():
    set_global_config(RuntimeConfig(db_path=":memory:", llm_model="fake-model"))
    web.state.attach(WorkspaceStore.open(":memory:"))
    yield TestClient(web.app)
    web.state.close()


def test_status(client):
    data = client.get("/api/status").json()
    assert data["ready"] is True
    assert data["model"] == "fake-model"


def test_apply_then_list(client):
    response = client.post(
        "/api/apply",
        json={"text": "createTask[Buy milk]:high\ncreateEvent[Gym]:2025-06-01 18:00::Health:"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "I've processed your request."
    assert data["applied"] == 2
    assert [n["title"] for n in data["notices"]] == ["Task Created", "Event Created"]

    workspace = client.get("/api/workspace").json()
    assert workspace["tasks"][0]["title"] == "Buy milk"
    assert workspace["events"][0]["end"] == "2025-06-01T19:00:00"
    assert workspace["stats"]["total_tasks"] == 1


def test_apply_reports_failures(client):
    data = client.post("/api/apply", json={"text": "updateTask[nope]:New"}).json()
    assert data["failed"] == 1
    assert data["entries"][0]["reason"] == "not found"


def test_apply_requires_text(client):
    assert client.post("/api/apply", json={"text": "  "}).status_code == 400


def test_toggle_task(client):
    task = web.state.store.create_task(title="Flip")
    assert client.post(f"/api/tasks/{task.id}/toggle").json()["completed"] is True
    assert client.post("/api/tasks/missing/toggle").status_code == 404


def test_chat(client):
    web.state.session.client = FakeLLM("KB{Likes oat milk:preferences}")

    data = client.post("/api/chat", json={"message": "I like oat milk"}).json()

    assert data["error"] is False
    assert data["message"] == "I've processed your request."
    assert data["entries"][0]["kind"] == "addKnowledgeItem"
    assert web.state.store.knowledge_items[0].tags == ["preferences"]


def test_no_workspace_is_unavailable():
    web.state.close()
    assert TestClient(web.app).get("/api/workspace").status_code == 503
