from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from loguru import logger

from ..domain.models import is_valid_status

if TYPE_CHECKING:
    from .store import BoardStore


class DragDropReducer:
    """Tracks the card being dragged and commits a column change on drop.

    States are ``idle`` (``dragging_task_id is None``) and ``dragging``.
    Hovering never touches the store; only :meth:`drop` does.
    """

    def __init__(self, store: "BoardStore") -> None:
        self._store = store
        self.dragging_task_id: Optional[str] = None

    @property
    def state(self) -> str:
        return "idle" if self.dragging_task_id is None else "dragging"

    def drag_start(self, task_id: str) -> None:
        if self.dragging_task_id is not None and self.dragging_task_id != task_id:
            logger.debug("Drag of {} replaced by {}", self.dragging_task_id, task_id)
        self.dragging_task_id = task_id

    def drag_over(self, status: str) -> bool:
        """Report whether dropping on ``status`` would be accepted."""
        return self.dragging_task_id is not None and is_valid_status(status)

    def drop(self, status: str) -> bool:
        task_id = self.dragging_task_id
        if task_id is None:
            return False
        self.dragging_task_id = None
        return self._store.move_task(task_id, status)

    def drag_end(self) -> None:
        """Pointer released outside a column; forget the drag."""
        self.dragging_task_id = None

    cancel = drag_end
