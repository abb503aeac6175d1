"""Default board content used on first run and when local state is unreadable."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ..domain.models import ChecklistItem, Project, Task, now_ms


def default_projects() -> list[Project]:
    return [
        Project(id="p1", name="Design Weekly", description="A board to keep track of design progress.", theme_color="pink"),
        Project(id="p2", name="Personal", description="Household chores and personal goals.", theme_color="blue"),
    ]


def default_tasks(today: Optional[date] = None) -> list[Task]:
    today = today or date.today()
    created = now_ms()
    return [
        Task(
            id="t1",
            project_id="p1",
            title="Review scope",
            description="Review #390.",
            status="todo",
            tags=["Design"],
            due_date=today.isoformat(),
            created_at=created,
        ),
        Task(
            id="t2",
            project_id="p1",
            title="Usability test",
            description="Research questions with Carina.",
            status="in-progress",
            tags=["Research"],
            created_at=created,
        ),
        Task(
            id="t3",
            project_id="p1",
            title="Culture workshop",
            description="Let's build a great team.",
            status="testing",
            due_date=(today + timedelta(days=2)).isoformat(),
            checklist=[
                ChecklistItem(id="c1", text="Schedule time", completed=True),
                ChecklistItem(id="c2", text="Set up a Figma board", completed=False),
                ChecklistItem(id="c3", text="Review exercises with the team", completed=False),
            ],
            created_at=created,
        ),
        Task(
            id="t4",
            project_id="p2",
            title="Take Coco to a vet",
            description="Regular checkup.",
            status="todo",
            tags=["Pet"],
            due_date=(today + timedelta(days=5)).isoformat(),
            created_at=created,
        ),
    ]
