from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..domain.models import Project, Task


class GatewayFailure(RuntimeError):
    """A load or save that could not reach durable storage.

    ``status`` is the HTTP status code for remote failures, ``None`` for
    transport and local IO failures.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message if status is None else f"HTTP {status}: {message}")
        self.message = message
        self.status = status


class PersistenceGateway(ABC):
    """Loads and saves the two board collections as whole sequences."""

    @abstractmethod
    def load_projects(self) -> list[Project]:
        raise NotImplementedError

    @abstractmethod
    def save_projects(self, projects: Sequence[Project]) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_tasks(self) -> list[Task]:
        raise NotImplementedError

    @abstractmethod
    def save_tasks(self, tasks: Sequence[Task]) -> None:
        raise NotImplementedError


class ProjectRepository(ABC):
    @abstractmethod
    def list(self) -> list[Project]:
        raise NotImplementedError

    @abstractmethod
    def get(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, project: Project) -> Project:
        raise NotImplementedError

    @abstractmethod
    def delete(self, project_id: str) -> bool:
        raise NotImplementedError


class TaskRepository(ABC):
    @abstractmethod
    def list(self) -> list[Task]:
        raise NotImplementedError

    @abstractmethod
    def get(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, task: Task) -> Task:
        raise NotImplementedError

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete_for_project(self, project_id: str) -> int:
        raise NotImplementedError
