from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import (
    DEFAULT_STATUS,
    DEFAULT_THEME_COLOR,
    THEME_COLORS,
    ChecklistItem,
    Project,
    Task,
    TaskUpdate,
    apply_task_update,
    is_valid_status,
    new_task,
    normalize_theme_color,
)
from .container import ServerContainer


class ChecklistItemPayload(BaseModel):
    id: Optional[str] = None
    text: str = ""
    completed: bool = False


class CreateProjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str
    description: str = ""
    theme_color: str = Field(default=DEFAULT_THEME_COLOR, alias="themeColor")


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    project_id: str = Field(alias="projectId")
    title: str
    description: str = ""
    status: str = DEFAULT_STATUS
    tags: list[str] = Field(default_factory=list)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    checklist: list[ChecklistItemPayload] = Field(default_factory=list)


class UpdateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[list[str]] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    checklist: Optional[list[ChecklistItemPayload]] = None


def _checklist(items: list[ChecklistItemPayload]) -> list[ChecklistItem]:
    out: list[ChecklistItem] = []
    for item in items:
        entry = ChecklistItem(text=item.text, completed=item.completed)
        if item.id:
            entry.id = item.id
        out.append(entry)
    return out


def _newest_first(tasks: list[Task]) -> list[Task]:
    # Later inserts win ties on createdAt.
    return sorted(reversed(tasks), key=lambda t: t.created_at, reverse=True)


def create_router(container: ServerContainer) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["kanban"])

    @router.get("/projects")
    async def list_projects() -> list[dict[str, Any]]:
        return [project.to_dict() for project in container.projects.list()]

    @router.post("/projects", status_code=201)
    async def create_project(body: CreateProjectRequest) -> dict[str, Any]:
        name = body.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Project name is required")
        if body.theme_color.strip().lower() not in THEME_COLORS:
            raise HTTPException(status_code=400, detail=f"Invalid themeColor: {body.theme_color}")
        project = Project(name=name, description=body.description, theme_color=normalize_theme_color(body.theme_color))
        if body.id and container.projects.get(body.id) is None:
            project.id = body.id
        container.projects.upsert(project)
        logger.info("Created project {} ({})", project.id, project.name)
        return project.to_dict()

    @router.delete("/projects/{project_id}")
    async def delete_project(project_id: str) -> dict[str, Any]:
        removed = container.tasks.delete_for_project(project_id)
        deleted = container.projects.delete(project_id)
        if deleted:
            logger.info("Deleted project {} and {} tasks", project_id, removed)
        return {"message": "Project deleted", "removedTasks": removed}

    @router.get("/tasks")
    async def list_tasks(project_id: Optional[str] = Query(None, alias="projectId")) -> list[dict[str, Any]]:
        tasks = container.tasks.list()
        if project_id:
            tasks = [task for task in tasks if task.project_id == project_id]
        return [task.to_dict() for task in _newest_first(tasks)]

    @router.post("/tasks", status_code=201)
    async def create_task(body: CreateTaskRequest) -> dict[str, Any]:
        if not body.title.strip():
            raise HTTPException(status_code=400, detail="Task title is required")
        if container.projects.get(body.project_id) is None:
            raise HTTPException(status_code=400, detail=f"Unknown projectId: {body.project_id}")
        if not is_valid_status(body.status):
            raise HTTPException(status_code=400, detail=f"Invalid status: {body.status}")
        task = new_task(
            body.project_id,
            body.title,
            body.description,
            body.status,
            body.due_date,
            body.tags,
            _checklist(body.checklist),
        )
        if body.id and container.tasks.get(body.id) is None:
            task.id = body.id
        container.tasks.upsert(task)
        return task.to_dict()

    @router.put("/tasks/{task_id}")
    async def update_task(task_id: str, body: UpdateTaskRequest) -> dict[str, Any]:
        task = container.tasks.get(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail="Task not found")
        updates = body.model_dump(by_alias=True, exclude_unset=True)
        if updates.get("status") is not None and not is_valid_status(updates["status"]):
            raise HTTPException(status_code=400, detail=f"Invalid status: {updates['status']}")
        if updates.get("title") is not None and not str(updates["title"]).strip():
            raise HTTPException(status_code=400, detail="Task title is required")
        update = TaskUpdate.from_dict(updates)
        if body.checklist is not None:
            update.checklist = _checklist(body.checklist)
        merged = apply_task_update(task, update)
        container.tasks.upsert(merged)
        return merged.to_dict()

    @router.delete("/tasks/{task_id}")
    async def delete_task(task_id: str) -> dict[str, Any]:
        container.tasks.delete(task_id)
        return {"message": "Task deleted"}

    return router
