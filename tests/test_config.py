from __future__ import annotations

from pathlib import Path

from kanban_board.config import (
    BackendConfig,
    build_gateway,
    get_backend_config,
    load_board_config,
    save_board_config,
)
from kanban_board.constants import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from kanban_board.storage.local_gateway import LocalGateway
from kanban_board.storage.remote_gateway import RemoteGateway


def test_missing_config_is_empty(tmp_path: Path) -> None:
    assert load_board_config(tmp_path) == ({}, None)


def test_config_round_trip(tmp_path: Path) -> None:
    save_board_config(tmp_path, {"backend": "remote", "active_project_id": "p2"})
    config, err = load_board_config(tmp_path)
    assert err is None
    assert config["backend"] == "remote"
    assert config["active_project_id"] == "p2"
    assert config["schema_version"] == 1


def test_unreadable_config_reports_error(tmp_path: Path) -> None:
    path = tmp_path / ".kanban" / "config.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("- not\n- a mapping\n", encoding="utf-8")
    config, err = load_board_config(tmp_path)
    assert config == {}
    assert err and "expected mapping" in err


def test_backend_defaults() -> None:
    backend = get_backend_config({}, env={})
    assert backend == BackendConfig("local", DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS)


def test_env_overrides_file() -> None:
    backend = get_backend_config(
        {"backend": "local", "api_url": "http://file/api", "timeout": 3},
        env={"KANBAN_BACKEND": "REMOTE", "KANBAN_API_URL": "http://env/api"},
    )
    assert backend.backend == "remote"
    assert backend.api_url == "http://env/api"
    assert backend.timeout == 3.0


def test_unknown_backend_falls_back_to_local() -> None:
    assert get_backend_config({"backend": "cloud", "timeout": "soon"}, env={}).backend == "local"
    assert get_backend_config({"timeout": "soon"}, env={}).timeout == DEFAULT_TIMEOUT_SECONDS


def test_build_gateway(tmp_path: Path) -> None:
    local = build_gateway(tmp_path, BackendConfig())
    assert isinstance(local, LocalGateway)
    assert local.state_root == tmp_path.resolve() / ".kanban"
    remote = build_gateway(tmp_path, BackendConfig(backend="remote", api_url="http://host/api/", timeout=2))
    assert isinstance(remote, RemoteGateway)
    assert remote.api_url == "http://host/api"
    assert remote.timeout == 2
