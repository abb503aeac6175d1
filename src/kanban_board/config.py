"""Load board configuration from `.kanban/config.yaml`."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import (
    BACKEND_LOCAL,
    BACKEND_REMOTE,
    BACKENDS,
    CONFIG_FILE,
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_API_URL,
    ENV_BACKEND,
    STATE_DIR_NAME,
    STATE_SCHEMA_VERSION,
)
from .io_utils import FileLock, atomic_write_yaml, load_yaml_with_error
from .storage.interfaces import PersistenceGateway
from .storage.local_gateway import LocalGateway
from .storage.remote_gateway import RemoteGateway


@dataclass
class BackendConfig:
    backend: str = BACKEND_LOCAL
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS


def state_root(board_dir: Path) -> Path:
    return board_dir.resolve() / STATE_DIR_NAME


def load_board_config(board_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional board config file.

    Args:
        board_dir: Directory holding the `.kanban` state directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = state_root(board_dir) / CONFIG_FILE
    data, err = load_yaml_with_error(path, {})
    if err:
        return {}, err
    return data, None


def save_board_config(board_dir: Path, config: dict[str, Any]) -> None:
    root = state_root(board_dir)
    config["schema_version"] = STATE_SCHEMA_VERSION
    with FileLock(root / "config.lock"):
        atomic_write_yaml(root / CONFIG_FILE, config)


def get_backend_config(config: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> BackendConfig:
    """Resolve the persistence backend from the config file and environment.

    Args:
        config: Board configuration dictionary.
        env: Environment mapping (defaults to `os.environ`).

    Returns:
        The effective `BackendConfig`. Unknown backends fall back to local.
    """
    env = os.environ if env is None else env
    backend = str(env.get(ENV_BACKEND) or config.get("backend") or BACKEND_LOCAL).strip().lower()
    if backend not in BACKENDS:
        backend = BACKEND_LOCAL
    api_url = str(env.get(ENV_API_URL) or config.get("api_url") or DEFAULT_API_URL).strip()
    try:
        timeout = float(config.get("timeout") or DEFAULT_TIMEOUT_SECONDS)
    except (TypeError, ValueError):
        timeout = DEFAULT_TIMEOUT_SECONDS
    return BackendConfig(backend=backend, api_url=api_url, timeout=timeout)


def build_gateway(board_dir: Path, backend: BackendConfig) -> PersistenceGateway:
    if backend.backend == BACKEND_REMOTE:
        return RemoteGateway(backend.api_url, timeout=backend.timeout)
    return LocalGateway(state_root(board_dir))
