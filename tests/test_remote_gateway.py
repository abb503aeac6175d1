from __future__ import annotations

import io
import json
import urllib.error
import urllib.parse
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from kanban_board.board import BoardStore, PersistScheduler
from kanban_board.domain.models import Project, Task
from kanban_board.server import create_app
from kanban_board.storage import remote_gateway
from kanban_board.storage.interfaces import GatewayFailure
from kanban_board.storage.remote_gateway import RemoteGateway

API_URL = "http://kanban.test/api"


class _Response:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_Response":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


class ApiBridge:
    """Route urllib requests made by the gateway into a TestClient."""

    def __init__(self, client: TestClient) -> None:
        self.client = client
        self.calls: list[tuple[str, str, Any]] = []

    def __call__(self, request, timeout: float | None = None) -> _Response:
        parsed = urllib.parse.urlsplit(request.full_url)
        path = parsed.path + (f"?{parsed.query}" if parsed.query else "")
        body = json.loads(request.data) if request.data else None
        self.calls.append((request.get_method(), path, body))
        resp = self.client.request(request.get_method(), path, json=body)
        if resp.status_code >= 400:
            raise urllib.error.HTTPError(request.full_url, resp.status_code, "error", {}, io.BytesIO(resp.content))
        return _Response(resp.content)


@pytest.fixture
def client(tmp_path: Path):
    with TestClient(create_app(tmp_path / "server", seed=True)) as test_client:
        yield test_client


@pytest.fixture
def bridge(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> ApiBridge:
    api = ApiBridge(client)
    monkeypatch.setattr(remote_gateway.urllib.request, "urlopen", api)
    return api


def _methods(bridge: ApiBridge) -> list[tuple[str, str]]:
    return [(method, path) for method, path, _ in bridge.calls]


def test_load_collections(bridge: ApiBridge) -> None:
    gateway = RemoteGateway(API_URL)
    assert [p.id for p in gateway.load_projects()] == ["p1", "p2"]
    assert {t.id for t in gateway.load_tasks()} == {"t1", "t2", "t3", "t4"}
    assert [t.id for t in gateway.load_project_tasks("p2")] == ["t4"]


def test_new_task_is_posted(bridge: ApiBridge, client: TestClient) -> None:
    gateway = RemoteGateway(API_URL)
    tasks = gateway.load_tasks()
    gateway.load_projects()
    bridge.calls.clear()

    new = Task(id="task-local", project_id="p1", title="Kickoff", tags=["Plan"])
    gateway.save_tasks([new] + tasks)

    assert _methods(bridge) == [("POST", "/api/tasks")]
    assert "createdAt" not in bridge.calls[0][2]
    stored = client.get("/api/tasks", params={"projectId": "p1"}).json()
    assert stored[0]["id"] == "task-local"


def test_changed_task_sends_partial_update(bridge: ApiBridge, client: TestClient) -> None:
    gateway = RemoteGateway(API_URL)
    tasks = gateway.load_tasks()
    bridge.calls.clear()

    for task in tasks:
        if task.id == "t1":
            task.status = "complete"
    gateway.save_tasks(tasks)

    assert bridge.calls == [("PUT", "/api/tasks/t1", {"status": "complete"})]
    t1 = next(t for t in client.get("/api/tasks").json() if t["id"] == "t1")
    assert t1["status"] == "complete"
    assert t1["tags"] == ["Design"]


def test_unchanged_save_sends_nothing(bridge: ApiBridge) -> None:
    gateway = RemoteGateway(API_URL)
    tasks = gateway.load_tasks()
    bridge.calls.clear()
    gateway.save_tasks(tasks)
    assert bridge.calls == []


def test_removed_task_is_deleted(bridge: ApiBridge, client: TestClient) -> None:
    gateway = RemoteGateway(API_URL)
    tasks = gateway.load_tasks()
    bridge.calls.clear()
    gateway.save_tasks([t for t in tasks if t.id != "t2"])
    assert _methods(bridge) == [("DELETE", "/api/tasks/t2")]
    assert "t2" not in {t["id"] for t in client.get("/api/tasks").json()}


def test_project_sync(bridge: ApiBridge, client: TestClient) -> None:
    gateway = RemoteGateway(API_URL)
    projects = gateway.load_projects()
    gateway.load_tasks()
    bridge.calls.clear()

    fresh = Project(id="proj-local", name="Q1 Planning", theme_color="yellow")
    gateway.save_projects([p for p in projects if p.id != "p1"] + [fresh])
    assert sorted(_methods(bridge)) == [("DELETE", "/api/projects/p1"), ("POST", "/api/projects")]
    assert [p["id"] for p in client.get("/api/projects").json()] == ["p2", "proj-local"]

    # The server already dropped p1's tasks; saving the pruned list must not resend deletes.
    bridge.calls.clear()
    remaining = [Task.from_dict(t) for t in client.get("/api/tasks").json()]
    gateway.save_tasks(remaining)
    assert bridge.calls == []


def test_server_assigned_id_is_aliased(bridge: ApiBridge, client: TestClient) -> None:
    gateway = RemoteGateway(API_URL)
    gateway.load_projects()
    gateway.load_tasks()
    # p2 is taken, so the server assigns a fresh id.
    clash = Project(id="p2", name="Clash")
    gateway._known_projects.pop("p2")
    gateway.save_projects([Project(id="p1", name="Design Weekly"), clash])
    remote_id = gateway._remote_id("p2")
    assert remote_id != "p2"

    task = Task(id="task-x", project_id="p2", title="Under clash")
    gateway.save_tasks([task])
    posted = [body for method, path, body in bridge.calls if method == "POST" and path == "/api/tasks"]
    assert posted[-1]["projectId"] == remote_id


def test_http_error_becomes_gateway_failure(bridge: ApiBridge) -> None:
    gateway = RemoteGateway(API_URL)
    gateway.load_projects()
    gateway.load_tasks()
    with pytest.raises(GatewayFailure) as excinfo:
        gateway.save_tasks([Task(id="task-y", project_id="nope", title="Orphan")])
    assert excinfo.value.status == 400
    assert "Unknown projectId" in str(excinfo.value)


def test_transport_error_becomes_gateway_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(request, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(remote_gateway.urllib.request, "urlopen", refuse)
    with pytest.raises(GatewayFailure) as excinfo:
        RemoteGateway(API_URL).load_projects()
    assert excinfo.value.status is None


def test_invalid_json_becomes_gateway_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(remote_gateway.urllib.request, "urlopen", lambda request, timeout=None: _Response(b"<html>"))
    with pytest.raises(GatewayFailure):
        RemoteGateway(API_URL).load_tasks()


def test_store_over_remote_backend(bridge: ApiBridge, client: TestClient) -> None:
    board = BoardStore(RemoteGateway(API_URL), PersistScheduler(), active_project_id="p1").load()
    try:
        project = board.create_project("Q1 Planning")
        task = board.create_task("Kickoff")
        board.move_task("t3", "complete")
        board.delete_project("p2")
        board.flush(timeout=10)
        assert board.last_error is None
    finally:
        board.close()

    projects = [p["id"] for p in client.get("/api/projects").json()]
    tasks = {t["id"]: t for t in client.get("/api/tasks").json()}
    assert projects == ["p1", project.id]
    assert tasks[task.id]["projectId"] == project.id
    assert tasks["t3"]["status"] == "complete"
    assert "t4" not in tasks
