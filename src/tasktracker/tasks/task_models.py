# src/tasktracker/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


def normalize_due(due: datetime) -> datetime:
    """
    Bring a due instant into the stored form: timezone-aware UTC.

    Naive datetimes are taken to already be in UTC. datetime carries microseconds at most,
    so this is also the microsecond-rounded form every backend returns.

    Raises ValueError when the instant has no representation in UTC
    (e.g. 0001-01-01T00:00:00+01:00).
    """
    if due.tzinfo is None or due.tzinfo.utcoffset(due) is None:
        return due.replace(tzinfo=UTC)
    try:
        return due.astimezone(UTC)
    except OverflowError as e:
        raise ValueError(f"due {due.isoformat()} is out of range in UTC") from e


@dataclass(slots=True)
class Task:
    id: int
    text: str
    tags: list[str]
    due: datetime

    @classmethod
    def new(cls, task_id: int, text: str, tags: Iterable[str] | None, due: datetime) -> Task:
        # Fresh list: never alias the caller's sequence.
        return cls(id=task_id, text=text, tags=list(tags or ()), due=normalize_due(due))

    def copy(self) -> Task:
        return Task(id=self.id, text=self.text, tags=list(self.tags), due=self.due)

    def due_date(self) -> tuple[int, int, int]:
        return self.due.year, self.due.month, self.due.day

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "tags": list(self.tags),
            "due": self.due.isoformat(),
        }
