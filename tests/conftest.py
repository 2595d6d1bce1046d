# tests/conftest.py

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tasktracker.config import Settings
from tasktracker.core.state import AppState
from tasktracker.tasks.memory_store import InMemoryTaskStore
from tasktracker.tasks.task_store import SqliteTaskStore
from tasktracker.web.app import create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings built directly from defaults, never from the real environment,
    to keep unit tests isolated and deterministic.
    """
    return dataclasses.replace(
        Settings.defaults(),
        log_dir=tmp_path / "logs",
        log_to_file=False,
        sqlite_path=tmp_path / "tasks.sqlite3",
        sqlite_timeout_s=5.0,
    )


@pytest.fixture()
def memory_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture()
def sqlite_store(tmp_path: Path) -> SqliteTaskStore:
    return SqliteTaskStore(tmp_path / "tasks.sqlite3", timeout_s=5.0)


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    """Every backend, fresh per test: contract tests run once per backend."""
    if request.param == "memory":
        return InMemoryTaskStore()
    return SqliteTaskStore(tmp_path / f"contract-{request.param}.sqlite3", timeout_s=5.0)


@pytest.fixture(params=["memory", "sqlite"])
def client(request: pytest.FixtureRequest, settings: Settings) -> TestClient:
    if request.param == "memory":
        task_store = InMemoryTaskStore()
    else:
        task_store = SqliteTaskStore(settings.sqlite_path, timeout_s=settings.sqlite_timeout_s)
    app = create_app(AppState(settings=settings, task_store=task_store))
    return TestClient(app)
