from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from ..domain.models import (
    DEFAULT_STATUS,
    DEFAULT_THEME_COLOR,
    ChecklistItem,
    Project,
    Task,
    TaskUpdate,
    _coerce_tags,
    _unique_checklist,
    apply_task_update,
    is_valid_status,
    new_project,
    new_task,
    normalize_due_date,
)
from ..storage.interfaces import PersistenceGateway
from .persistence import PersistScheduler
from .view import BoardView, filter_and_group

Subscriber = Callable[["BoardStore"], None]


class BoardStore:
    """Authoritative in-memory projects, tasks and active-project selection.

    Mutations never raise: invalid input and unknown ids are no-ops reported
    through the return value. Every effective mutation notifies subscribers
    and schedules a save of the collections it touched.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        scheduler: Optional[PersistScheduler] = None,
        active_project_id: str = "",
    ) -> None:
        self._gateway = gateway
        self._scheduler = scheduler or PersistScheduler()
        self._projects: list[Project] = []
        self._tasks: list[Task] = []
        self._subscribers: list[Subscriber] = []
        self.active_project_id = active_project_id or ""
        self.search_query = ""

    # -------------------- lifecycle --------------------
    def load(self) -> "BoardStore":
        """Hydrate from the gateway. Gateway failures propagate."""
        projects = self._gateway.load_projects()
        tasks = self._gateway.load_tasks()
        self._projects = list(projects)
        self._tasks = list(tasks)
        self._repair_selection()
        logger.info("Loaded {} projects and {} tasks", len(self._projects), len(self._tasks))
        self._notify()
        return self

    def flush(self, timeout: Optional[float] = None) -> None:
        self._scheduler.flush(timeout)

    def close(self) -> None:
        self._scheduler.shutdown()

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._scheduler.last_error

    # -------------------- queries --------------------
    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def active_project(self) -> Optional[Project]:
        return self.get_project(self.active_project_id)

    def board(self, query: Optional[str] = None) -> BoardView:
        return filter_and_group(self._tasks, self.active_project_id, self.search_query if query is None else query)

    # -------------------- observers --------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    # -------------------- internals --------------------
    def _repair_selection(self) -> None:
        if self.get_project(self.active_project_id) is not None:
            return
        previous = self.active_project_id
        self.active_project_id = self._projects[0].id if self._projects else ""
        if previous != self.active_project_id:
            logger.debug("Active project repaired: {!r} -> {!r}", previous, self.active_project_id)

    def _persist_projects(self) -> None:
        snapshot = list(self._projects)
        self._scheduler.schedule("projects", lambda: self._gateway.save_projects(snapshot))

    def _persist_tasks(self) -> None:
        snapshot = list(self._tasks)
        self._scheduler.schedule("tasks", lambda: self._gateway.save_tasks(snapshot))

    def _replace_task(self, updated: Task) -> None:
        self._tasks = [updated if task.id == updated.id else task for task in self._tasks]
        self._persist_tasks()
        self._notify()

    # -------------------- projects --------------------
    def create_project(self, name: str, description: str = "", theme_color: str = DEFAULT_THEME_COLOR) -> Optional[Project]:
        if not (name or "").strip():
            logger.debug("Rejected project with empty name")
            return None
        project = new_project(name, description, theme_color)
        self._projects = self._projects + [project]
        self.active_project_id = project.id
        self._repair_selection()
        logger.info("Created project {} ({})", project.id, project.name)
        self._persist_projects()
        self._notify()
        return project

    def delete_project(self, project_id: str) -> bool:
        if self.get_project(project_id) is None:
            return False
        # Both collections are swapped together so no task outlives its project.
        projects = [p for p in self._projects if p.id != project_id]
        tasks = [t for t in self._tasks if t.project_id != project_id]
        removed = len(self._tasks) - len(tasks)
        self._projects, self._tasks = projects, tasks
        self._repair_selection()
        logger.info("Deleted project {} and {} tasks", project_id, removed)
        self._persist_projects()
        self._persist_tasks()
        self._notify()
        return True

    def select_project(self, project_id: str) -> str:
        self.active_project_id = project_id or ""
        self._repair_selection()
        self._notify()
        return self.active_project_id

    def set_search_query(self, query: str) -> None:
        self.search_query = query or ""
        self._notify()

    # -------------------- tasks --------------------
    def create_task(
        self,
        title: str,
        description: str = "",
        status: str = DEFAULT_STATUS,
        due_date: Any = None,
        tags: Iterable[str] = (),
        checklist: Iterable[ChecklistItem] = (),
        project_id: Optional[str] = None,
    ) -> Optional[Task]:
        if not (title or "").strip():
            logger.debug("Rejected task with empty title")
            return None
        owner = project_id or self.active_project_id
        if self.get_project(owner) is None:
            logger.debug("Rejected task for unknown project {!r}", owner)
            return None
        task = new_task(owner, title, description, status, due_date, tags, checklist)
        self._tasks = [task] + self._tasks
        logger.info("Created task {} in {}", task.id, owner)
        self._persist_tasks()
        self._notify()
        return task

    def delete_task(self, task_id: str) -> bool:
        if self.get_task(task_id) is None:
            return False
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._persist_tasks()
        self._notify()
        return True

    def update_task(self, task: Task) -> bool:
        """Replace the task with the same id wholesale.

        The owning project and creation time stay with the stored task.
        """
        current = self.get_task(task.id)
        if current is None:
            return False
        if not task.title.strip():
            logger.debug("Rejected replacement of task {}", task.id)
            return False
        if task.project_id != current.project_id:
            logger.debug("Ignoring project change of task {} to {!r}", task.id, task.project_id)
        task = replace(
            task,
            project_id=current.project_id,
            title=task.title.strip(),
            status=task.status if is_valid_status(task.status) else current.status,
            tags=_coerce_tags(task.tags),
            due_date=normalize_due_date(task.due_date),
            checklist=_unique_checklist(replace(item) for item in task.checklist),
            created_at=current.created_at,
        )
        self._replace_task(task)
        return True

    def edit_task(self, task_id: str, update: TaskUpdate) -> Optional[Task]:
        current = self.get_task(task_id)
        if current is None:
            return None
        updated = apply_task_update(current, update)
        if updated != current:
            self._replace_task(updated)
        return updated

    def toggle_checklist_item(self, task_id: str, item_id: str) -> bool:
        current = self.get_task(task_id)
        if current is None or all(item.id != item_id for item in current.checklist):
            return False
        return self.update_task(current.toggle_checklist_item(item_id))

    def move_task(self, task_id: str, new_status: str) -> bool:
        current = self.get_task(task_id)
        if current is None or not is_valid_status(new_status):
            return False
        if current.status != new_status:
            self._replace_task(replace(current, status=new_status))
        return True
