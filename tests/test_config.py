# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from tasktracker.cli.bootstrap import create_initial_state, create_task_store
from tasktracker.config import ConfigError, Settings, load_settings
from tasktracker.tasks.memory_store import InMemoryTaskStore
from tasktracker.tasks.task_store import SqliteTaskStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)  # no stray .env picked up
    for name in (
        "TASKS_APP_NAME",
        "TASKS_LOG_LEVEL",
        "TASKS_PORT",
        "TASKS_LISTEN_ADDRESS",
        "TASKS_BACKEND",
        "TASKS_SQLITE_PATH",
        "TASKS_WRITE_TIMEOUT_S",
        "TASKS_READ_TIMEOUT_S",
        "TASKS_LOG_DIR",
        "TASKS_LOG_TO_FILE",
        "TASKS_SQLITE_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = load_settings(use_dotenv=False)
    assert s == Settings.defaults()
    assert s.backend == "memory"
    assert s.port == 8080


def test_yaml_then_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "http_server:\n"
        "  listen_address: 0.0.0.0\n"
        "  port: 9000\n"
        "  write_timeout_s: 3\n"
        "storage:\n"
        "  backend: sqlite\n"
        f"  sqlite_path: {tmp_path / 'db.sqlite3'}\n",
        "utf-8",
    )
    monkeypatch.setenv("TASKS_PORT", "9100")

    s = load_settings(cfg, use_dotenv=False)
    assert s.listen_address == "0.0.0.0"
    assert s.port == 9100
    assert s.write_timeout_s == 3.0
    assert s.backend == "sqlite"
    assert s.sqlite_path == tmp_path / "db.sqlite3"


def test_dotenv_file_is_loaded(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("TASKS_APP_NAME=from-dotenv\n", "utf-8")
    s = load_settings()
    assert s.app_name == "from-dotenv"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("TASKS_BACKEND", "postgres"),
        ("TASKS_PORT", "0"),
        ("TASKS_PORT", "eighty"),
        ("TASKS_WRITE_TIMEOUT_S", "-1"),
    ],
)
def test_invalid_env_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings(use_dotenv=False)


def test_invalid_yaml(tmp_path: Path) -> None:
    cfg = tmp_path / "config.yaml"
    cfg.write_text("- just\n- a list\n", "utf-8")
    with pytest.raises(ConfigError):
        load_settings(cfg, use_dotenv=False)

    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.yaml", use_dotenv=False)


def test_store_factory_follows_backend(settings: Settings) -> None:
    assert isinstance(create_task_store(settings), InMemoryTaskStore)

    sqlite_settings = Settings.from_mapping({"storage": {"backend": "sqlite"}}, settings)
    state = create_initial_state(sqlite_settings)
    assert isinstance(state.task_store, SqliteTaskStore)
    assert state.settings is sqlite_settings
    assert sqlite_settings.sqlite_path.exists()
