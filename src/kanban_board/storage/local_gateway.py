from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, TypeVar

from loguru import logger

from ..constants import PROJECTS_FILE, TASKS_FILE
from ..domain.models import Project, Task
from .file_repos import _YamlCollectionRepo, project_collection, task_collection
from .interfaces import GatewayFailure, PersistenceGateway
from .seed import default_projects, default_tasks

T = TypeVar("T")


class LocalGateway(PersistenceGateway):
    """Two YAML slots in ``state_root``: ``projects.yaml`` and ``tasks.yaml``.

    Loading never fails: an absent or unreadable slot yields the seed
    collection so the board always has something to show.
    """

    def __init__(self, state_root: Path) -> None:
        self.state_root = state_root
        self._projects = project_collection(state_root / PROJECTS_FILE, state_root / "projects.lock")
        self._tasks = task_collection(state_root / TASKS_FILE, state_root / "tasks.lock")

    @staticmethod
    def _read_slot(repo: _YamlCollectionRepo[T]) -> Optional[list[T]]:
        try:
            with repo._thread_lock:
                with repo._lock:
                    items, err = repo._read()
        except OSError as exc:
            items, err = None, f"{repo.path.name}: {exc}"
        if err:
            logger.warning("Unreadable slot {}, falling back to seed data: {}", repo.path, err)
        return items

    def load_projects(self) -> list[Project]:
        items = self._read_slot(self._projects)
        return default_projects() if items is None else items

    def load_tasks(self) -> list[Task]:
        items = self._read_slot(self._tasks)
        return default_tasks() if items is None else items

    def save_projects(self, projects: Sequence[Project]) -> None:
        try:
            with self._projects._thread_lock:
                with self._projects._lock:
                    self._projects._save(list(projects))
        except OSError as exc:
            raise GatewayFailure(f"Failed to write {self._projects.path}: {exc}") from exc

    def save_tasks(self, tasks: Sequence[Task]) -> None:
        try:
            with self._tasks._thread_lock:
                with self._tasks._lock:
                    self._tasks._save(list(tasks))
        except OSError as exc:
            raise GatewayFailure(f"Failed to write {self._tasks.path}: {exc}") from exc
