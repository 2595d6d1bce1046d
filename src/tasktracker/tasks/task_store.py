# src/tasktracker/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..core.context import CallContext
from .errors import OperationCancelledError, TaskNotFoundError, TaskStorageError
from .task_models import Task, normalize_due

logger = logging.getLogger(__name__)

_COLUMNS = "id, description, tags, due"

# VM instructions between cancellation checks.
_PROGRESS_STEPS = 1000

# SQLite INTEGER is signed 64-bit; no stored id can fall outside it.
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


def _due_to_db(due: datetime) -> str:
    # Fixed-width UTC text: sorts correctly and date(due) truncates it to the day.
    return normalize_due(due).replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")


def _due_from_db(raw: str) -> datetime:
    # Stored text carries no offset; re-attach UTC so callers never see a naive value.
    return datetime.fromisoformat(raw).replace(tzinfo=UTC)


def _tags_to_db(tags: Sequence[str] | None) -> str:
    return json.dumps(list(tags or ()), ensure_ascii=False)


def _tags_from_db(raw: str | None) -> list[str]:
    if not raw:
        return []
    val = json.loads(raw)
    return [str(t) for t in val] if isinstance(val, list) else []


class SqliteTaskStore:
    """
    SQLite task store.

    Same observable contract as InMemoryTaskStore:
    - ids come from INTEGER PRIMARY KEY AUTOINCREMENT, so deleted ids are never handed out again
    - tags are a JSON array; lookup by tag is exact membership via json_each
    - due is stored as UTC text with microseconds and always returned as an aware UTC datetime
    - delete_task on a missing id raises TaskNotFoundError (checked via rowcount)

    Thread-safety:
    - each method opens its own SQLite connection and runs a single statement

    Cancellation:
    - a CallContext deadline caps the busy timeout, and a progress handler aborts the running
      statement once the context is cancelled or expired
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, timeout_s: float = 30.0) -> None:
        self._db_path = Path(db_path)
        self._timeout_s = float(timeout_s)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TaskStorageError(f"cannot create directory for {self._db_path}: {e}") from e
        self._ensure_schema()
        logger.info("SqliteTaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self, ctx: CallContext | None) -> sqlite3.Connection:
        timeout = self._timeout_s
        if ctx is not None:
            remaining = ctx.remaining()
            if remaining is not None:
                timeout = min(timeout, remaining)
        conn = sqlite3.connect(str(self._db_path), timeout=timeout)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        if ctx is not None:
            conn.set_progress_handler(lambda: 1 if ctx.done() else 0, _PROGRESS_STEPS)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _session(self, ctx: CallContext | None, action: str) -> Iterator[sqlite3.Connection]:
        """
        One connection for one statement.

        Commits on success; any sqlite3.Error becomes TaskStorageError (or
        OperationCancelledError when the context caused it).
        """
        if ctx is not None and ctx.done():
            raise OperationCancelledError(f"failed to {action}: {ctx.reason()}")
        conn: sqlite3.Connection | None = None
        try:
            conn = self._get_conn(ctx)
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            if ctx is not None and ctx.done():
                raise OperationCancelledError(f"failed to {action}: {ctx.reason()}") from e
            raise TaskStorageError(f"failed to {action}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def _ensure_schema(self) -> None:
        with self._session(None, "create schema") as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    description TEXT NOT NULL,
                    tags TEXT NOT NULL DEFAULT '[]',
                    due TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            text=str(row["description"]),
            tags=_tags_from_db(row["tags"]),
            due=_due_from_db(str(row["due"])),
        )

    def _select(
        self,
        ctx: CallContext | None,
        action: str,
        where: str = "",
        params: tuple[object, ...] = (),
    ) -> list[Task]:
        sql = f"SELECT {_COLUMNS} FROM tasks"
        if where:
            sql += f" WHERE {where}"
        with self._session(ctx, action) as conn:
            rows = conn.execute(sql, params).fetchall()
            try:
                return [self._row_to_task(r) for r in rows]
            except (ValueError, TypeError) as e:
                raise TaskStorageError(f"failed to {action}: could not load task from row: {e}") from e

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._session(None, "count tasks") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def create_task(
        self,
        text: str,
        tags: Sequence[str] | None,
        due: datetime,
        *,
        ctx: CallContext | None = None,
    ) -> int:
        with self._session(ctx, "create task") as conn:
            cur = conn.execute(
                "INSERT INTO tasks(description, tags, due) VALUES (?, ?, ?)",
                (text, _tags_to_db(tags), _due_to_db(due)),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise TaskStorageError("failed to create task: SQLite did not return lastrowid")
            task_id = int(rowid)
        logger.debug("Task added id=%s due=%s", task_id, due)
        return task_id

    def get_task(self, task_id: int, *, ctx: CallContext | None = None) -> Task:
        if not _ID_MIN <= int(task_id) <= _ID_MAX:
            raise TaskNotFoundError(task_id)
        tasks = self._select(ctx, f"get task id={task_id}", "id = ?", (int(task_id),))
        if not tasks:
            raise TaskNotFoundError(task_id)
        return tasks[0]

    def delete_task(self, task_id: int, *, ctx: CallContext | None = None) -> None:
        if not _ID_MIN <= int(task_id) <= _ID_MAX:
            raise TaskNotFoundError(task_id)
        with self._session(ctx, f"delete task id={task_id}") as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            deleted = cur.rowcount
        # A DELETE matching zero rows is not an SQLite error.
        if deleted == 0:
            raise TaskNotFoundError(task_id)

    def delete_all_tasks(self, *, ctx: CallContext | None = None) -> None:
        with self._session(ctx, "delete all tasks") as conn:
            conn.execute("DELETE FROM tasks")

    def get_all_tasks(self, *, ctx: CallContext | None = None) -> list[Task]:
        return self._select(ctx, "query all tasks")

    def get_tasks_by_tag(self, tag: str, *, ctx: CallContext | None = None) -> list[Task]:
        return self._select(
            ctx,
            "query tasks by tag",
            "EXISTS (SELECT 1 FROM json_each(tasks.tags) WHERE json_each.value = ?)",
            (tag,),
        )

    def get_tasks_by_due_date(
        self,
        year: int,
        month: int,
        day: int,
        *,
        ctx: CallContext | None = None,
    ) -> list[Task]:
        day_str = f"{int(year):04d}-{int(month):02d}-{int(day):02d}"
        return self._select(ctx, "query tasks by due date", "date(due) = ?", (day_str,))
