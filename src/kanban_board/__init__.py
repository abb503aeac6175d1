"""Personal kanban board: projects, tasks, filtering and persistence."""

from __future__ import annotations

from .board import BoardStore, DragDropReducer, filter_and_group

__version__ = "0.1.0"

__all__ = ["BoardStore", "DragDropReducer", "filter_and_group", "__version__"]
