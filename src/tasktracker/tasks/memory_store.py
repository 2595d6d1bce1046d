# src/tasktracker/tasks/memory_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime

from ..core.context import CallContext
from .errors import TaskNotFoundError
from .task_models import Task

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """
    In-memory task store.

    Thread-safety:
    - one lock guards the dict and the id counter for the whole of every operation,
      so operations never interleave, even on unrelated ids
    - scans hold the lock for O(number of tasks)

    Ids start at 0 and only ever increase; delete_all_tasks keeps the counter.
    The ctx argument is accepted for interface parity and ignored: nothing here blocks on I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[int, Task] = {}
        self._next_id = 0
        logger.info("InMemoryTaskStore ready")

    def close(self) -> None:
        """Compatibility hook for shutdown (nothing to release)."""
        return

    def create_task(
        self,
        text: str,
        tags: Sequence[str] | None,
        due: datetime,
        *,
        ctx: CallContext | None = None,
    ) -> int:
        with self._lock:
            task = Task.new(self._next_id, text, tags, due)
            self._tasks[task.id] = task
            self._next_id += 1
        logger.debug("Task added id=%s tags=%s due=%s", task.id, task.tags, task.due)
        return task.id

    def get_task(self, task_id: int, *, ctx: CallContext | None = None) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            return task.copy()

    def delete_task(self, task_id: int, *, ctx: CallContext | None = None) -> None:
        with self._lock:
            if task_id not in self._tasks:
                raise TaskNotFoundError(task_id)
            del self._tasks[task_id]

    def delete_all_tasks(self, *, ctx: CallContext | None = None) -> None:
        with self._lock:
            self._tasks = {}

    def get_all_tasks(self, *, ctx: CallContext | None = None) -> list[Task]:
        with self._lock:
            return [t.copy() for t in self._tasks.values()]

    def get_tasks_by_tag(self, tag: str, *, ctx: CallContext | None = None) -> list[Task]:
        # `tag in t.tags` stops at the first equal element.
        with self._lock:
            return [t.copy() for t in self._tasks.values() if tag in t.tags]

    def get_tasks_by_due_date(
        self,
        year: int,
        month: int,
        day: int,
        *,
        ctx: CallContext | None = None,
    ) -> list[Task]:
        wanted = (year, month, day)
        with self._lock:
            return [t.copy() for t in self._tasks.values() if t.due_date() == wanted]

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)
