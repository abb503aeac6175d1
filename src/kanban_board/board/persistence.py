from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from loguru import logger

# Projects are written before tasks so a new task never reaches the backend
# ahead of the project it belongs to.
COLLECTION_ORDER: tuple[str, ...] = ("projects", "tasks")

ErrorHandler = Callable[[str, BaseException], None]


class PersistScheduler:
    """Fire-and-forget saves on a single background worker.

    Only the newest snapshot of a collection is written: a save that is still
    queued when a newer one arrives is dropped. Failures are logged, kept in
    :attr:`last_error` and handed to ``on_error``.
    """

    def __init__(self, on_error: Optional[ErrorHandler] = None) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kanban-persist")
        self._lock = threading.Lock()
        self._pending: dict[str, Callable[[], None]] = {}
        self._on_error = on_error
        self.last_error: Optional[BaseException] = None
        self.failures = 0

    def schedule(self, collection: str, save: Callable[[], None]) -> Future:
        with self._lock:
            self._pending[collection] = save
        return self._executor.submit(self._drain)

    def _drain(self) -> None:
        with self._lock:
            pending = self._pending
            self._pending = {}
        order = [name for name in COLLECTION_ORDER if name in pending]
        order += [name for name in pending if name not in COLLECTION_ORDER]
        for collection in order:
            try:
                pending[collection]()
            except Exception as exc:
                self.failures += 1
                self.last_error = exc
                logger.error("Saving {} failed: {}", collection, exc)
                if self._on_error is None:
                    continue
                try:
                    self._on_error(collection, exc)
                except Exception:
                    logger.exception("Error handler for {} failed", collection)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every save scheduled so far has finished."""
        self._executor.submit(lambda: None).result(timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
