from __future__ import annotations

from typing import Sequence

import pytest

from kanban_board.board import BoardStore, DragDropReducer
from kanban_board.domain.models import Project, Task
from kanban_board.storage.interfaces import PersistenceGateway
from kanban_board.storage.seed import default_projects, default_tasks


class _NullGateway(PersistenceGateway):
    def load_projects(self) -> list[Project]:
        return default_projects()

    def load_tasks(self) -> list[Task]:
        return default_tasks()

    def save_projects(self, projects: Sequence[Project]) -> None:
        return None

    def save_tasks(self, tasks: Sequence[Task]) -> None:
        return None


@pytest.fixture
def store():
    board = BoardStore(_NullGateway(), active_project_id="p1").load()
    yield board
    board.close()


@pytest.fixture
def reducer(store: BoardStore) -> DragDropReducer:
    return DragDropReducer(store)


def test_starts_idle(reducer: DragDropReducer) -> None:
    assert reducer.state == "idle"
    assert reducer.dragging_task_id is None


def test_drop_moves_task_and_resets(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t1")
    assert reducer.state == "dragging"
    assert reducer.drop("testing") is True
    assert reducer.state == "idle"
    assert store.get_task("t1").status == "testing"
    assert [t.id for t in store.board().columns["testing"]] == ["t1", "t3"]


def test_drag_over_does_not_mutate(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t1")
    assert reducer.drag_over("complete") is True
    assert reducer.drag_over("archived") is False
    assert store.get_task("t1").status == "todo"
    assert reducer.state == "dragging"


def test_drag_over_while_idle(reducer: DragDropReducer) -> None:
    assert reducer.drag_over("todo") is False


def test_drop_without_drag_is_noop(store: BoardStore, reducer: DragDropReducer) -> None:
    before = [t.to_dict() for t in store.tasks]
    assert reducer.drop("complete") is False
    assert [t.to_dict() for t in store.tasks] == before


def test_drag_end_cancels(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t2")
    reducer.drag_end()
    assert reducer.state == "idle"
    assert reducer.drop("complete") is False
    assert store.get_task("t2").status == "in-progress"


def test_drop_on_same_column(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t2")
    assert reducer.drop("in-progress") is True
    assert store.get_task("t2").status == "in-progress"


def test_drop_of_deleted_task(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t2")
    store.delete_task("t2")
    assert reducer.drop("complete") is False
    assert reducer.state == "idle"


def test_new_drag_replaces_old(store: BoardStore, reducer: DragDropReducer) -> None:
    reducer.drag_start("t1")
    reducer.drag_start("t2")
    reducer.drop("complete")
    assert store.get_task("t1").status == "todo"
    assert store.get_task("t2").status == "complete"
