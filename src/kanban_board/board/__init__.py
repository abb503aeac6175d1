from .drag import DragDropReducer
from .persistence import PersistScheduler
from .store import BoardStore
from .view import BoardView, filter_and_group, filter_tasks

__all__ = [
    "BoardStore",
    "BoardView",
    "DragDropReducer",
    "PersistScheduler",
    "filter_and_group",
    "filter_tasks",
]
