# src/tasktracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- receives settings loaded once by the entrypoint,
- ensures local (gitignored) directories exist,
- picks the concrete TaskStore backend and wires it into AppState.
"""

from __future__ import annotations

import logging

from ..config import Settings
from ..core.ports import TaskStore
from ..core.state import AppState
from ..tasks.memory_store import InMemoryTaskStore
from ..tasks.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    if settings.backend == "sqlite":
        settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)


def create_task_store(settings: Settings) -> TaskStore:
    """Build the backend named by settings.backend."""
    if settings.backend == "memory":
        return InMemoryTaskStore()
    if settings.backend == "sqlite":
        return SqliteTaskStore(settings.sqlite_path, timeout_s=settings.sqlite_timeout_s)
    raise ValueError(f"unknown storage backend: {settings.backend!r}")


def create_initial_state(settings: Settings) -> AppState:
    """
    Create AppState from the provided settings.

    Settings are passed in rather than read here, so tests can build state from any Settings.
    """
    _ensure_local_dirs(settings)
    store = create_task_store(settings)
    logger.info("Using %s task store", settings.backend)
    return AppState(settings=settings, task_store=store)
