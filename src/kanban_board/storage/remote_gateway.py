from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional, Sequence

from loguru import logger

from ..constants import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from ..domain.models import Project, Task, diff_task
from .interfaces import GatewayFailure, PersistenceGateway


def _copy_task(task: Task) -> Task:
    return Task.from_dict(task.to_dict())


def _error_message(exc: urllib.error.HTTPError) -> str:
    try:
        raw = exc.read().decode("utf-8", errors="replace")
    except Exception:
        raw = ""
    try:
        body = json.loads(raw) if raw else None
    except json.JSONDecodeError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return detail if isinstance(detail, str) else json.dumps(detail)
    return raw.strip() or str(exc.reason or "request failed")


class RemoteGateway(PersistenceGateway):
    """REST-backed gateway.

    Saves reconcile the given collection against the last state known to be on
    the server: new records are created, changed tasks are sent as partial
    updates, and missing records are deleted. Ids supplied by the client are
    offered to the server; if the server assigns its own, the mapping is kept
    for later calls.
    """

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._known_projects: Optional[dict[str, Project]] = None
        self._known_tasks: Optional[dict[str, Task]] = None
        self._aliases: dict[str, str] = {}

    # -------------------- transport --------------------
    def _request(self, method: str, path: str, body: Any = None, query: Optional[dict[str, str]] = None) -> Any:
        url = self.api_url + path
        if query:
            url += "?" + urllib.parse.urlencode(query)
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(
            url,
            data=data,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method=method,
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            raise GatewayFailure(_error_message(exc), status=exc.code) from exc
        except urllib.error.URLError as exc:
            raise GatewayFailure(f"{method} {url} failed: {exc.reason}") from exc
        except (TimeoutError, OSError) as exc:
            raise GatewayFailure(f"{method} {url} failed: {exc}") from exc
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise GatewayFailure(f"{method} {url} returned invalid JSON") from exc

    def _remote_id(self, local_id: str) -> str:
        return self._aliases.get(local_id, local_id)

    def _record_alias(self, local_id: str, remote_id: str) -> None:
        if remote_id != local_id:
            logger.warning("Server assigned id {} to local record {}", remote_id, local_id)
            self._aliases[local_id] = remote_id

    # -------------------- projects --------------------
    def _fetch_projects(self) -> list[Project]:
        data = self._request("GET", "/projects")
        if not isinstance(data, list):
            raise GatewayFailure("GET /projects did not return a list")
        return [Project.from_dict(item) for item in data if isinstance(item, dict)]

    def load_projects(self) -> list[Project]:
        projects = self._fetch_projects()
        self._known_projects = {p.id: p for p in projects}
        return projects

    def save_projects(self, projects: Sequence[Project]) -> None:
        if self._known_projects is None:
            self._known_projects = {p.id: p for p in self._fetch_projects()}
        known = self._known_projects
        wanted: set[str] = set()
        for project in projects:
            remote_id = self._remote_id(project.id)
            wanted.add(remote_id)
            if remote_id in known:
                continue
            payload = project.to_dict()
            created = self._request("POST", "/projects", payload)
            created_id = str((created or {}).get("id") or project.id)
            self._record_alias(project.id, created_id)
            known[created_id] = project
            wanted.add(created_id)
        for remote_id in [pid for pid in known if pid not in wanted]:
            self._request("DELETE", f"/projects/{urllib.parse.quote(remote_id, safe='')}")
            del known[remote_id]
            # The server removes the project's tasks with it.
            if self._known_tasks is not None:
                for task_id in [tid for tid, t in self._known_tasks.items() if self._remote_id(t.project_id) == remote_id]:
                    del self._known_tasks[task_id]

    # -------------------- tasks --------------------
    def _fetch_tasks(self, project_id: Optional[str] = None) -> list[Task]:
        query = {"projectId": self._remote_id(project_id)} if project_id else None
        data = self._request("GET", "/tasks", query=query)
        if not isinstance(data, list):
            raise GatewayFailure("GET /tasks did not return a list")
        return [Task.from_dict(item) for item in data if isinstance(item, dict)]

    def load_tasks(self) -> list[Task]:
        tasks = self._fetch_tasks()
        self._known_tasks = {t.id: _copy_task(t) for t in tasks}
        return tasks

    def load_project_tasks(self, project_id: str) -> list[Task]:
        return self._fetch_tasks(project_id)

    def save_tasks(self, tasks: Sequence[Task]) -> None:
        if self._known_tasks is None:
            self._known_tasks = {t.id: _copy_task(t) for t in self._fetch_tasks()}
        known = self._known_tasks
        wanted: set[str] = set()
        for task in tasks:
            remote_id = self._remote_id(task.id)
            wanted.add(remote_id)
            previous = known.get(remote_id)
            if previous is None:
                payload = task.to_dict()
                payload["projectId"] = self._remote_id(task.project_id)
                payload.pop("createdAt", None)
                created = self._request("POST", "/tasks", payload)
                created_id = str((created or {}).get("id") or task.id)
                self._record_alias(task.id, created_id)
                known[created_id] = _copy_task(task)
                wanted.add(created_id)
                continue
            update = diff_task(previous, task)
            if update.is_empty():
                continue
            self._request("PUT", f"/tasks/{urllib.parse.quote(remote_id, safe='')}", update.to_dict())
            known[remote_id] = _copy_task(task)
        for remote_id in [tid for tid in known if tid not in wanted]:
            self._request("DELETE", f"/tasks/{urllib.parse.quote(remote_id, safe='')}")
            del known[remote_id]
