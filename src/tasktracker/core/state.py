# src/tasktracker/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from .ports import TaskStore


@dataclass(slots=True)
class AppState:
    """Everything the HTTP layer needs, wired once by the composition root."""

    settings: Settings
    task_store: TaskStore
