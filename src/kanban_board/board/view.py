"""Derive the four-column board from the flat task collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from ..domain.models import STATUS_LABELS, TASK_STATUSES, Task


def matches_query(task: Task, query: str) -> bool:
    needle = (query or "").lower()
    if not needle:
        return True
    if needle in task.title.lower():
        return True
    return any(needle in tag.lower() for tag in task.tags)


def filter_tasks(tasks: Iterable[Task], active_project_id: str, query: str = "") -> list[Task]:
    return [task for task in tasks if task.project_id == active_project_id and matches_query(task, query)]


@dataclass
class BoardView:
    project_id: str
    query: str = ""
    columns: dict[str, list[Task]] = field(default_factory=lambda: {status: [] for status in TASK_STATUSES})

    def counts(self) -> dict[str, int]:
        return {status: len(items) for status, items in self.columns.items()}

    def total(self) -> int:
        return sum(len(items) for items in self.columns.values())

    def task_ids(self) -> list[str]:
        return [task.id for status in TASK_STATUSES for task in self.columns[status]]

    def to_dict(self, today: Optional[date] = None) -> dict[str, Any]:
        columns = []
        for status in TASK_STATUSES:
            cards = []
            for task in self.columns[status]:
                done, total = task.checklist_progress()
                card = task.to_dict()
                card["checklistProgress"] = {"completed": done, "total": total}
                card["overdue"] = task.is_overdue(today)
                cards.append(card)
            columns.append({"status": status, "label": STATUS_LABELS[status], "count": len(cards), "tasks": cards})
        return {"projectId": self.project_id, "query": self.query, "columns": columns}


def filter_and_group(tasks: Iterable[Task], active_project_id: str, query: str = "") -> BoardView:
    """Partition the visible tasks by status, keeping their source order."""
    view = BoardView(project_id=active_project_id, query=query or "")
    for task in filter_tasks(tasks, active_project_id, query):
        view.columns[task.status].append(task)
    return view
