# src/tasktracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the HTTP layer.

Handlers depend on the TaskStore Protocol instead of a concrete backend,
so the in-memory and SQLite stores are interchangeable and tests can use either.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from ..tasks.task_models import Task
from .context import CallContext


@runtime_checkable
class TaskStore(Protocol):
    """
    Storage capability for tasks.

    Contract shared by every backend:
    - ids are assigned by the store, unique and never reused (not even after delete_all_tasks)
    - returned Tasks are independent copies; due is always UTC
    - get_task / delete_task raise TaskNotFoundError for unknown ids
    - backend failures raise TaskStorageError
    """

    def create_task(
            self,
            text: str,
            tags: Sequence[str] | None,
            due: datetime,
            *,
            ctx: CallContext | None = None,
    ) -> int: ...

    def get_task(self, task_id: int, *, ctx: CallContext | None = None) -> Task: ...
    def delete_task(self, task_id: int, *, ctx: CallContext | None = None) -> None: ...
    def delete_all_tasks(self, *, ctx: CallContext | None = None) -> None: ...
    def get_all_tasks(self, *, ctx: CallContext | None = None) -> list[Task]: ...
    def get_tasks_by_tag(self, tag: str, *, ctx: CallContext | None = None) -> list[Task]: ...

    def get_tasks_by_due_date(
            self,
            year: int,
            month: int,
            day: int,
            *,
            ctx: CallContext | None = None,
    ) -> list[Task]: ...

    def close(self) -> None: ...
