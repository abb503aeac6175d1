from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from ..constants import STATE_SCHEMA_VERSION
from ..domain.models import Project, Task
from ..io_utils import FileLock, atomic_write_yaml, load_yaml_with_error
from .interfaces import ProjectRepository, TaskRepository


T = TypeVar("T")


class _YamlCollectionRepo(Generic[T]):
    """One YAML document holding a single named list of records."""

    def __init__(
        self,
        path: Path,
        lock_path: Path,
        key: str,
        loader: Callable[[dict[str, Any]], T],
        dumper: Callable[[T], dict[str, Any]],
    ) -> None:
        self._path = path
        self._lock = FileLock(lock_path)
        self._thread_lock = threading.RLock()
        self._key = key
        self._loader = loader
        self._dumper = dumper

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> tuple[Optional[list[T]], str | None]:
        """Return ``(items, error)``; ``items`` is ``None`` when the slot is absent or unusable."""
        if not self._path.exists():
            return None, None
        raw, err = load_yaml_with_error(self._path, {})
        if err:
            return None, err
        items = raw.get(self._key)
        if not isinstance(items, list):
            return None, f"{self._path.name}: missing '{self._key}' list"
        out: list[T] = []
        for item in items:
            if isinstance(item, dict):
                out.append(self._loader(item))
        return out, None

    def _load(self) -> list[T]:
        items, err = self._read()
        if err:
            raise RuntimeError(err)
        return items or []

    def _save(self, items: Sequence[T]) -> None:
        payload = {"version": STATE_SCHEMA_VERSION, self._key: [self._dumper(item) for item in items]}
        atomic_write_yaml(self._path, payload)


def project_collection(path: Path, lock_path: Path) -> _YamlCollectionRepo[Project]:
    return _YamlCollectionRepo[Project](
        path,
        lock_path,
        "projects",
        loader=Project.from_dict,
        dumper=lambda p: p.to_dict(),
    )


def task_collection(path: Path, lock_path: Path) -> _YamlCollectionRepo[Task]:
    return _YamlCollectionRepo[Task](
        path,
        lock_path,
        "tasks",
        loader=Task.from_dict,
        dumper=lambda t: t.to_dict(),
    )


class FileProjectRepository(ProjectRepository):
    """Projects in creation order."""

    def __init__(self, path: Path, lock_path: Path) -> None:
        self._repo = project_collection(path, lock_path)

    def list(self) -> list[Project]:
        with self._repo._thread_lock:
            with self._repo._lock:
                return self._repo._load()

    def get(self, project_id: str) -> Optional[Project]:
        for project in self.list():
            if project.id == project_id:
                return project
        return None

    def upsert(self, project: Project) -> Project:
        with self._repo._thread_lock:
            with self._repo._lock:
                projects = self._repo._load()
                for idx, existing in enumerate(projects):
                    if existing.id == project.id:
                        projects[idx] = project
                        self._repo._save(projects)
                        return project
                projects.append(project)
                self._repo._save(projects)
        return project

    def delete(self, project_id: str) -> bool:
        with self._repo._thread_lock:
            with self._repo._lock:
                projects = self._repo._load()
                keep = [p for p in projects if p.id != project_id]
                if len(keep) == len(projects):
                    return False
                self._repo._save(keep)
        return True


class FileTaskRepository(TaskRepository):
    def __init__(self, path: Path, lock_path: Path) -> None:
        self._repo = task_collection(path, lock_path)

    def list(self) -> list[Task]:
        with self._repo._thread_lock:
            with self._repo._lock:
                return self._repo._load()

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.list():
            if task.id == task_id:
                return task
        return None

    def upsert(self, task: Task) -> Task:
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                for idx, existing in enumerate(tasks):
                    if existing.id == task.id:
                        # Creation time is owned by the stored record.
                        task.created_at = existing.created_at
                        tasks[idx] = task
                        self._repo._save(tasks)
                        return task
                tasks.append(task)
                self._repo._save(tasks)
        return task

    def delete(self, task_id: str) -> bool:
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                keep = [t for t in tasks if t.id != task_id]
                if len(keep) == len(tasks):
                    return False
                self._repo._save(keep)
        return True

    def delete_for_project(self, project_id: str) -> int:
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                keep = [t for t in tasks if t.project_id != project_id]
                removed = len(tasks) - len(keep)
                if removed:
                    self._repo._save(keep)
        return removed
