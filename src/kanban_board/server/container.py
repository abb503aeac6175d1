from __future__ import annotations

from pathlib import Path

from loguru import logger

from ..constants import PROJECTS_FILE, TASKS_FILE
from ..storage.file_repos import FileProjectRepository, FileTaskRepository
from ..storage.seed import default_projects, default_tasks


class ServerContainer:
    def __init__(self, state_dir: Path) -> None:
        self.state_dir = state_dir.resolve()
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.projects = FileProjectRepository(self.state_dir / PROJECTS_FILE, self.state_dir / "projects.lock")
        self.tasks = FileTaskRepository(self.state_dir / TASKS_FILE, self.state_dir / "tasks.lock")

    def seed(self) -> bool:
        """Load the sample board into an empty backend. Returns True if seeded."""
        if self.projects.list() or self.tasks.list():
            return False
        for project in default_projects():
            self.projects.upsert(project)
        for task in default_tasks():
            self.tasks.upsert(task)
        logger.info("Seeded backend in {}", self.state_dir)
        return True
