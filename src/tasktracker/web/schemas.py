# src/tasktracker/web/schemas.py

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..tasks.task_models import normalize_due

# Seconds followed by more fractional digits than datetime can hold.
_SUB_MICROSECOND_RE = re.compile(r"^(?P<head>.*\d{2}:\d{2}:\d{2})[.,](?P<frac>\d{7,})(?P<tail>.*)$")


def round_sub_microseconds(value: str) -> str | datetime:
    """
    Round an ISO-8601 timestamp with more than 6 fractional digits to the nearest
    microsecond (half-up). Other strings are returned unchanged for pydantic to parse.
    """
    m = _SUB_MICROSECOND_RE.match(value)
    if m is None:
        return value
    frac = m["frac"]
    parsed = datetime.fromisoformat(f"{m['head']}.{frac[:6]}{m['tail']}")
    if frac[6] >= "5":
        try:
            parsed += timedelta(microseconds=1)
        except OverflowError as e:
            raise ValueError(f"due {value!r} is out of range") from e
    return parsed


class TaskCreate(BaseModel):
    """POST /tasks body. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    text: str = Field(default="", description="Free-text description")
    tags: list[str] | None = Field(default=None, description="Ordered tags; null or missing means none")
    due: datetime = Field(..., description="Due instant (ISO-8601); naive values are taken as UTC")

    @field_validator("due", mode="before")
    @classmethod
    def _round_due(cls, value: Any) -> Any:
        if isinstance(value, str):
            return round_sub_microseconds(value)
        return value

    @field_validator("due")
    @classmethod
    def _due_in_utc(cls, value: datetime) -> datetime:
        return normalize_due(value)


class TaskCreated(BaseModel):
    id: int


class TaskOut(BaseModel):
    id: int
    text: str
    tags: list[str]
    due: datetime


class Pong(BaseModel):
    message: str = "pong"
