# src/tasktracker/core/context.py

"""
Per-call cancellation / deadline signal passed to TaskStore operations.

A CallContext is created by the caller (one per HTTP request) and can be cancelled from
another thread. Backends that talk to something slow check it cooperatively; the in-memory
store never blocks on I/O and ignores it.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class CallContext:
    deadline: float | None = None  # time.monotonic() value
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float | None) -> CallContext:
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + max(0.0, float(seconds)))

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        return self.cancelled or self.expired()

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def reason(self) -> str:
        if self.cancelled:
            return "cancelled"
        if self.expired():
            return "deadline exceeded"
        return "active"
