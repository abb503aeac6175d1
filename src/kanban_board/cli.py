from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from .board import BoardStore, PersistScheduler
from .config import (
    build_gateway,
    get_backend_config,
    load_board_config,
    save_board_config,
    state_root,
)
from .constants import BACKENDS, DEFAULT_SERVER_PORT, SERVER_DIR_NAME
from .domain.models import TASK_STATUSES, TaskUpdate, new_checklist_item, normalize_due_date, parse_tags
from .storage.interfaces import GatewayFailure


def _configure_logging(level: str = "WARNING") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _resolve_board_dir(board_dir: Optional[str]) -> Path:
    return Path(board_dir).expanduser().resolve() if board_dir else Path.cwd().resolve()


def _emit(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + '\n')


def _with_store(handler: Callable[[argparse.Namespace, BoardStore], Optional[dict[str, Any]]]) -> Callable[[argparse.Namespace], int]:
    """Open the board, run ``handler`` and wait for its saves to land.

    A handler returning ``None`` signals a rejected command (exit code 1).
    """

    def run(args: argparse.Namespace) -> int:
        board_dir = _resolve_board_dir(args.board_dir)
        config, err = load_board_config(board_dir)
        if err:
            logger.warning("Ignoring unreadable config: {}", err)
        backend = get_backend_config(config)
        if args.backend:
            backend.backend = args.backend
        if args.api_url:
            backend.api_url = args.api_url
        store = BoardStore(
            build_gateway(board_dir, backend),
            PersistScheduler(),
            active_project_id=str(config.get('active_project_id') or ''),
        )
        try:
            store.load()
            payload = handler(args, store)
            store.flush()
        finally:
            store.close()
        if store.last_error is not None:
            sys.stderr.write(f"Save failed: {store.last_error}\n")
            return 1
        if store.active_project_id != config.get('active_project_id'):
            config['active_project_id'] = store.active_project_id
            save_board_config(board_dir, config)
        if payload is None:
            return 1
        _emit(payload)
        return 0

    return run


def _reject(message: str) -> None:
    sys.stderr.write(message + '\n')


# -------------------- projects --------------------
def _project_list(args: argparse.Namespace, store: BoardStore) -> dict[str, Any]:
    return {
        'projects': [p.to_dict() for p in store.projects],
        'active_project_id': store.active_project_id,
    }


def _project_create(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    project = store.create_project(args.name, args.description, args.theme_color)
    if project is None:
        _reject('Project name must not be empty')
        return None
    return {'project': project.to_dict()}


def _project_delete(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    if not args.yes:
        _reject('Deleting a project removes all of its tasks; pass --yes to confirm')
        return None
    return {'removed': store.delete_project(args.project_id), 'active_project_id': store.active_project_id}


def _project_select(args: argparse.Namespace, store: BoardStore) -> dict[str, Any]:
    return {'active_project_id': store.select_project(args.project_id)}


# -------------------- tasks --------------------
def _task_create(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    task = store.create_task(
        args.title,
        description=args.description,
        status=args.status,
        due_date=args.due,
        tags=parse_tags(args.tags or ''),
        checklist=[new_checklist_item(text) for text in args.item if text.strip()],
        project_id=args.project,
    )
    if task is None:
        _reject('Task needs a non-empty title and an existing project')
        return None
    return {'task': task.to_dict()}


def _task_delete(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    if not args.yes:
        _reject('Pass --yes to confirm deleting the task')
        return None
    return {'removed': store.delete_task(args.task_id)}


def _task_move(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    if not store.move_task(args.task_id, args.status):
        _reject(f'Task not found: {args.task_id}')
        return None
    task = store.get_task(args.task_id)
    return {'task': task.to_dict() if task else None}


def _task_toggle(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    if not store.toggle_checklist_item(args.task_id, args.item_id):
        _reject(f'Checklist item not found: {args.task_id}/{args.item_id}')
        return None
    task = store.get_task(args.task_id)
    return {'task': task.to_dict() if task else None}


def _task_edit(args: argparse.Namespace, store: BoardStore) -> Optional[dict[str, Any]]:
    update = TaskUpdate(
        title=args.title,
        description=args.description,
        tags=parse_tags(args.tags) if args.tags is not None else None,
        due_date=normalize_due_date(args.due) if args.due else None,
        clear_due_date=args.clear_due,
    )
    task = store.edit_task(args.task_id, update)
    if task is None:
        _reject(f'Task not found: {args.task_id}')
        return None
    return {'task': task.to_dict()}


def _board(args: argparse.Namespace, store: BoardStore) -> dict[str, Any]:
    if args.project:
        store.select_project(args.project)
    view = store.board(args.search or '')
    payload = view.to_dict()
    project = store.active_project
    payload['project'] = project.to_dict() if project else None
    return payload


# -------------------- server --------------------
def _server(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    state_dir = state_root(_resolve_board_dir(args.board_dir)) / SERVER_DIR_NAME
    app = create_app(state_dir=state_dir, seed=args.seed)
    logger.info("Serving board API from {}", state_dir)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Personal kanban board')
    parser.add_argument('--board-dir', default=None, help='Directory holding .kanban state (default: current working directory)')
    parser.add_argument('--backend', default=None, choices=BACKENDS, help='Override the configured persistence backend')
    parser.add_argument('--api-url', default=None, help='Base URL of the REST backend')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log debug output to stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the REST backend')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=DEFAULT_SERVER_PORT, type=int)
    server.add_argument('--seed', action='store_true', help='Load the sample board into an empty backend')
    server.set_defaults(func=_server)

    project = subparsers.add_parser('project', help='Manage projects')
    project_sub = project.add_subparsers(dest='project_cmd', required=True)
    plist = project_sub.add_parser('list', help='List projects')
    plist.set_defaults(func=_with_store(_project_list))
    pcreate = project_sub.add_parser('create', help='Create a project and make it active')
    pcreate.add_argument('name')
    pcreate.add_argument('--description', default='')
    pcreate.add_argument('--theme-color', default='blue')
    pcreate.set_defaults(func=_with_store(_project_create))
    pdelete = project_sub.add_parser('delete', help='Delete a project and all of its tasks')
    pdelete.add_argument('project_id')
    pdelete.add_argument('--yes', action='store_true')
    pdelete.set_defaults(func=_with_store(_project_delete))
    pselect = project_sub.add_parser('select', help='Make a project active')
    pselect.add_argument('project_id')
    pselect.set_defaults(func=_with_store(_project_select))

    task = subparsers.add_parser('task', help='Manage tasks')
    task_sub = task.add_subparsers(dest='task_cmd', required=True)
    tcreate = task_sub.add_parser('create', help='Create a task in the active project')
    tcreate.add_argument('title')
    tcreate.add_argument('--description', default='')
    tcreate.add_argument('--status', default='todo', choices=TASK_STATUSES)
    tcreate.add_argument('--due', default=None, help='Due date (YYYY-MM-DD)')
    tcreate.add_argument('--tags', default='', help='Comma separated tags')
    tcreate.add_argument('--item', action='append', default=[], help='Checklist item (repeatable)')
    tcreate.add_argument('--project', default=None, help='Project id (default: active project)')
    tcreate.set_defaults(func=_with_store(_task_create))
    tdelete = task_sub.add_parser('delete', help='Delete a task')
    tdelete.add_argument('task_id')
    tdelete.add_argument('--yes', action='store_true')
    tdelete.set_defaults(func=_with_store(_task_delete))
    tmove = task_sub.add_parser('move', help='Move a task to another column')
    tmove.add_argument('task_id')
    tmove.add_argument('status', choices=TASK_STATUSES)
    tmove.set_defaults(func=_with_store(_task_move))
    ttoggle = task_sub.add_parser('toggle', help='Toggle a checklist item')
    ttoggle.add_argument('task_id')
    ttoggle.add_argument('item_id')
    ttoggle.set_defaults(func=_with_store(_task_toggle))
    tedit = task_sub.add_parser('edit', help='Edit task fields')
    tedit.add_argument('task_id')
    tedit.add_argument('--title', default=None)
    tedit.add_argument('--description', default=None)
    tedit.add_argument('--tags', default=None, help='Comma separated tags (replaces existing)')
    tedit.add_argument('--due', default=None, help='Due date (YYYY-MM-DD)')
    tedit.add_argument('--clear-due', action='store_true')
    tedit.set_defaults(func=_with_store(_task_edit))

    board = subparsers.add_parser('board', help='Show the columns of the active project')
    board.add_argument('--project', default=None, help='Switch to this project first')
    board.add_argument('--search', default='', help='Filter by title or tag')
    board.set_defaults(func=_with_store(_board))

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging('DEBUG' if args.verbose else 'WARNING')
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except GatewayFailure as exc:
        sys.stderr.write(f"Backend error: {exc}\n")
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
