from .models import (
    ChecklistItem,
    Project,
    Task,
    TaskUpdate,
    apply_task_update,
    diff_task,
    new_checklist_item,
    new_project,
    new_task,
)

__all__ = [
    "Project",
    "Task",
    "ChecklistItem",
    "TaskUpdate",
    "new_project",
    "new_task",
    "new_checklist_item",
    "apply_task_update",
    "diff_task",
]
