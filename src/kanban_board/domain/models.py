from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Iterable, Literal, Optional


TaskStatus = Literal["todo", "in-progress", "testing", "complete"]
ThemeColor = Literal["pink", "purple", "blue", "green", "yellow"]

# Display order of the board columns.
TASK_STATUSES: tuple[str, ...] = ("todo", "in-progress", "testing", "complete")
STATUS_LABELS: dict[str, str] = {
    "todo": "To Do",
    "in-progress": "In Progress",
    "testing": "Testing",
    "complete": "Complete",
}
THEME_COLORS: tuple[str, ...] = ("pink", "purple", "blue", "green", "yellow")

DEFAULT_STATUS = "todo"
DEFAULT_THEME_COLOR = "blue"


def now_ms() -> int:
    return int(time.time() * 1000)


def _id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def is_valid_status(value: Any) -> bool:
    return isinstance(value, str) and value in TASK_STATUSES


def normalize_status(value: Any) -> str:
    """Map any input onto the closed status set, falling back to ``todo``."""
    if is_valid_status(value):
        return value
    return DEFAULT_STATUS


def normalize_theme_color(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in THEME_COLORS:
        return value.strip().lower()
    return DEFAULT_THEME_COLOR


def normalize_due_date(value: Any) -> Optional[str]:
    """Reduce a date, datetime or ISO string to ``YYYY-MM-DD``.

    Unparseable values become ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return None


def parse_tags(text: str) -> list[str]:
    """Split a comma separated tag string, keeping the first of any duplicates."""
    tags: list[str] = []
    for part in str(text or "").split(","):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _coerce_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        return parse_tags(value)
    if not isinstance(value, (list, tuple)):
        return []
    tags: list[str] = []
    for item in value:
        tag = str(item).strip() if item is not None else ""
        if tag and tag not in tags:
            tags.append(tag)
    return tags


@dataclass
class ChecklistItem:
    id: str = field(default_factory=lambda: _id("item"))
    text: str = ""
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChecklistItem":
        return cls(
            id=str(data.get("id") or data.get("_id") or _id("item")),
            text=str(data.get("text") or ""),
            completed=bool(data.get("completed", False)),
        )


def new_checklist_item(text: str) -> ChecklistItem:
    return ChecklistItem(text=str(text).strip())


def _unique_checklist(items: Iterable[ChecklistItem]) -> list[ChecklistItem]:
    # Item ids must be unique within one checklist; clashes get a fresh id.
    seen: set[str] = set()
    out: list[ChecklistItem] = []
    for item in items:
        if item.id in seen:
            item = replace(item, id=_id("item"))
        seen.add(item.id)
        out.append(item)
    return out


@dataclass
class Project:
    id: str = field(default_factory=lambda: _id("proj"))
    name: str = ""
    description: str = ""
    theme_color: ThemeColor = DEFAULT_THEME_COLOR

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "themeColor": self.theme_color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        return cls(
            id=str(data.get("id") or data.get("_id") or _id("proj")),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            theme_color=normalize_theme_color(data.get("themeColor", data.get("theme_color"))),
        )


@dataclass
class Task:
    id: str = field(default_factory=lambda: _id("task"))
    project_id: str = ""
    title: str = ""
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS
    tags: list[str] = field(default_factory=list)
    due_date: Optional[str] = None
    checklist: list[ChecklistItem] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "tags": list(self.tags),
            "dueDate": self.due_date,
            "checklist": [item.to_dict() for item in self.checklist],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        raw_checklist = data.get("checklist") or []
        checklist = [ChecklistItem.from_dict(item) for item in raw_checklist if isinstance(item, dict)]
        try:
            created_at = int(data.get("createdAt", data.get("created_at")) or now_ms())
        except (TypeError, ValueError):
            created_at = now_ms()
        return cls(
            id=str(data.get("id") or data.get("_id") or _id("task")),
            project_id=str(data.get("projectId", data.get("project_id")) or ""),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            status=normalize_status(data.get("status")),
            tags=_coerce_tags(data.get("tags")),
            due_date=normalize_due_date(data.get("dueDate", data.get("due_date"))),
            checklist=_unique_checklist(checklist),
            created_at=created_at,
        )

    def toggle_checklist_item(self, item_id: str) -> "Task":
        """Return a copy with the completion of ``item_id`` flipped."""
        checklist = [
            replace(item, completed=not item.completed) if item.id == item_id else replace(item)
            for item in self.checklist
        ]
        return replace(self, tags=list(self.tags), checklist=checklist)

    def checklist_progress(self) -> tuple[int, int]:
        done = sum(1 for item in self.checklist if item.completed)
        return done, len(self.checklist)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if not self.due_date or self.status == "complete":
            return False
        today = today or date.today()
        return date.fromisoformat(self.due_date) < today


def new_project(name: str, description: str = "", theme_color: str = DEFAULT_THEME_COLOR) -> Project:
    return Project(
        name=name.strip(),
        description=description or "",
        theme_color=normalize_theme_color(theme_color),
    )


def new_task(
    project_id: str,
    title: str,
    description: str = "",
    status: str = DEFAULT_STATUS,
    due_date: Any = None,
    tags: Iterable[str] = (),
    checklist: Iterable[ChecklistItem] = (),
) -> Task:
    return Task(
        project_id=project_id,
        title=title.strip(),
        description=description or "",
        status=normalize_status(status),
        tags=_coerce_tags(list(tags)),
        due_date=normalize_due_date(due_date),
        checklist=_unique_checklist(replace(item) for item in checklist),
    )


@dataclass
class TaskUpdate:
    """Partial task edit. ``None`` means "leave unchanged".

    ``clear_due_date`` removes the due date, since ``due_date=None`` cannot.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[list[str]] = None
    due_date: Optional[str] = None
    clear_due_date: bool = False
    checklist: Optional[list[ChecklistItem]] = None

    def is_empty(self) -> bool:
        return (
            self.title is None
            and self.description is None
            and self.status is None
            and self.tags is None
            and self.due_date is None
            and not self.clear_due_date
            and self.checklist is None
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.title is not None:
            payload["title"] = self.title
        if self.description is not None:
            payload["description"] = self.description
        if self.status is not None:
            payload["status"] = self.status
        if self.tags is not None:
            payload["tags"] = list(self.tags)
        if self.clear_due_date:
            payload["dueDate"] = None
        elif self.due_date is not None:
            payload["dueDate"] = self.due_date
        if self.checklist is not None:
            payload["checklist"] = [item.to_dict() for item in self.checklist]
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskUpdate":
        checklist = data.get("checklist")
        due_present = "dueDate" in data or "due_date" in data
        due_raw = data.get("dueDate", data.get("due_date"))
        return cls(
            title=str(data["title"]) if data.get("title") is not None else None,
            description=str(data["description"]) if data.get("description") is not None else None,
            status=str(data["status"]) if data.get("status") is not None else None,
            tags=_coerce_tags(data["tags"]) if data.get("tags") is not None else None,
            due_date=normalize_due_date(due_raw),
            clear_due_date=due_present and due_raw in (None, ""),
            checklist=(
                [ChecklistItem.from_dict(item) for item in checklist if isinstance(item, dict)]
                if isinstance(checklist, list)
                else None
            ),
        )


def apply_task_update(task: Task, update: TaskUpdate) -> Task:
    """Merge ``update`` into a copy of ``task``.

    Identity, owning project and creation time always come from ``task``.
    An empty title or unknown status in the update is ignored.
    """
    title = task.title
    if update.title is not None and update.title.strip():
        title = update.title.strip()
    status = task.status
    if update.status is not None and is_valid_status(update.status):
        status = update.status
    due_date = task.due_date
    if update.clear_due_date:
        due_date = None
    elif update.due_date is not None:
        due_date = normalize_due_date(update.due_date) or task.due_date
    return Task(
        id=task.id,
        project_id=task.project_id,
        title=title,
        description=update.description if update.description is not None else task.description,
        status=status,
        tags=_coerce_tags(update.tags) if update.tags is not None else list(task.tags),
        due_date=due_date,
        checklist=(
            _unique_checklist(replace(item) for item in update.checklist)
            if update.checklist is not None
            else [replace(item) for item in task.checklist]
        ),
        created_at=task.created_at,
    )


def diff_task(before: Task, after: Task) -> TaskUpdate:
    """Compute the partial update turning ``before`` into ``after``."""
    update = TaskUpdate()
    if after.title != before.title:
        update.title = after.title
    if after.description != before.description:
        update.description = after.description
    if after.status != before.status:
        update.status = after.status
    if after.tags != before.tags:
        update.tags = list(after.tags)
    if after.due_date != before.due_date:
        if after.due_date is None:
            update.clear_due_date = True
        else:
            update.due_date = after.due_date
    if after.checklist != before.checklist:
        update.checklist = [replace(item) for item in after.checklist]
    return update
