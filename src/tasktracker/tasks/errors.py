# src/tasktracker/tasks/errors.py

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for everything a TaskStore raises."""


class TaskNotFoundError(TaskStoreError, LookupError):
    """The requested id has no task in the store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"task with id={task_id} not found")
        self.task_id = task_id


class TaskStorageError(TaskStoreError):
    """The backend failed or rejected the operation (connection, query, constraint)."""


class OperationCancelledError(TaskStorageError):
    """The call context was cancelled or its deadline passed before the backend finished."""
