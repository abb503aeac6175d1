from __future__ import annotations

import threading

from kanban_board.board.persistence import PersistScheduler


def test_projects_are_written_before_tasks() -> None:
    scheduler = PersistScheduler()
    gate = threading.Event()
    started = threading.Event()
    order: list[str] = []

    def block() -> None:
        started.set()
        gate.wait(5)

    try:
        scheduler.schedule("blocker", block)
        started.wait(5)
        scheduler.schedule("tasks", lambda: order.append("tasks"))
        scheduler.schedule("projects", lambda: order.append("projects"))
        gate.set()
        scheduler.flush(timeout=5)
    finally:
        scheduler.shutdown()
    assert order.index("projects") < order.index("tasks")


def test_superseded_snapshot_is_dropped() -> None:
    scheduler = PersistScheduler()
    gate = threading.Event()
    started = threading.Event()
    written: list[int] = []

    def block() -> None:
        started.set()
        gate.wait(5)

    try:
        scheduler.schedule("projects", block)
        started.wait(5)
        for n in range(5):
            scheduler.schedule("tasks", lambda n=n: written.append(n))
        gate.set()
        scheduler.flush(timeout=5)
    finally:
        scheduler.shutdown()
    assert written == [4]


def test_failure_is_recorded_and_reported() -> None:
    seen: list[tuple[str, str]] = []
    scheduler = PersistScheduler(on_error=lambda name, exc: seen.append((name, str(exc))))

    def boom() -> None:
        raise OSError("read-only file system")

    try:
        scheduler.schedule("tasks", boom)
        scheduler.schedule("projects", lambda: None)
        scheduler.flush(timeout=5)
    finally:
        scheduler.shutdown()
    assert scheduler.failures == 1
    assert isinstance(scheduler.last_error, OSError)
    assert seen == [("tasks", "read-only file system")]


def test_failing_error_handler_does_not_stop_later_saves() -> None:
    gate = threading.Event()
    started = threading.Event()
    saved: list[str] = []

    def block() -> None:
        started.set()
        gate.wait(5)

    def broken_handler(name: str, exc: BaseException) -> None:
        raise RuntimeError("handler crashed")

    def fail() -> None:
        raise OSError("disk full")

    scheduler = PersistScheduler(on_error=broken_handler)
    try:
        scheduler.schedule("blocker", block)
        started.wait(5)
        scheduler.schedule("projects", fail)
        scheduler.schedule("tasks", lambda: saved.append("tasks"))
        gate.set()
        scheduler.flush(timeout=5)
    finally:
        scheduler.shutdown()
    assert saved == ["tasks"]
    assert scheduler.failures == 1
    assert isinstance(scheduler.last_error, OSError)
