# src/task_timer/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path

from .task_models import Task

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Any task store failure: closed handle, SQL execution or row decoding."""


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - one shared connection, guarded by one lock
    - every public method holds the lock for its whole duration
    """

    def __init__(self, db_path: str | Path = "task-timer.db") -> None:
        self._db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._open_conn()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Failed to open task database {self._db_path}: {exc}") from exc
        try:
            self._ensure_schema(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StorageError(f"Failed to initialize task database {self._db_path}: {exc}") from exc
        self._conn = conn

        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.debug("TaskStore closed db=%s", self._db_path)

    def __enter__(self) -> TaskStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---- low-level helpers ----

    def _open_conn(self) -> sqlite3.Connection:
        # Autocommit: single statements commit on their own, transactions are explicit.
        conn = sqlite3.connect(
            str(self._db_path),
            timeout=30.0,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @staticmethod
    def _ensure_schema(conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY,
                label TEXT NOT NULL,
                elapsed_time INTEGER NOT NULL DEFAULT 0,
                position INTEGER NOT NULL DEFAULT 0
            )
            """
        )

        # Migrations (safe): add missing columns.
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(tasks)")}

        def add_col(name: str, decl: str) -> None:
            if name in cols:
                return
            conn.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
            logger.info("TaskStore migration: added column %s", name)

        add_col("elapsed_time", "INTEGER NOT NULL DEFAULT 0")
        add_col("position", "INTEGER NOT NULL DEFAULT 0")

    @contextlib.contextmanager
    def _locked(self, op: str) -> Iterator[sqlite3.Connection]:
        """Hold the store lock and translate sqlite errors into StorageError."""
        with self._lock:
            if self._conn is None:
                raise StorageError(f"{op}: task store is closed")
            try:
                yield self._conn
            except (sqlite3.Error, OverflowError) as exc:
                # OverflowError: an int outside SQLite's 64-bit range was bound.
                logger.warning("TaskStore %s failed db=%s: %s", op, self._db_path, exc)
                raise StorageError(f"{op} failed: {exc}") from exc

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        try:
            label = row["label"]
            elapsed = row["elapsed_time"]
            if label is None or elapsed is None:
                raise ValueError("NULL label or elapsed_time")
            return Task(
                id=int(row["id"]),
                label=str(label),
                elapsed_time=int(elapsed),
                # Legacy rows may carry NULL here.
                position=int(row["position"] or 0),
            )
        except (TypeError, ValueError) as exc:
            logger.warning("TaskStore could not decode row id=%r: %s", row["id"], exc)
            raise StorageError(f"Failed to decode task row: {exc}") from exc

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._locked("count_tasks") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_all(self) -> list[Task]:
        """All tasks ordered by (position, id)."""
        with self._locked("list_all") as conn:
            rows = conn.execute(
                "SELECT id, label, elapsed_time, position FROM tasks ORDER BY position, id"
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def upsert_one(self, task: Task) -> None:
        """Insert the task, or fully overwrite the row with the same id."""
        with self._locked("upsert_one") as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO tasks(id, label, elapsed_time, position)
                VALUES (?, ?, ?, ?)
                """,
                (task.id, task.label, task.elapsed_time, task.position),
            )
        logger.debug("Task saved id=%s position=%s", task.id, task.position)

    def upsert_many_with_reorder(self, tasks: Iterable[Task]) -> None:
        """
        Replace the whole task set with `tasks`, in one transaction.

        Each task's position becomes its index in `tasks`; incoming positions
        are ignored. If any insert fails, the delete is rolled back as well and
        the previous set stays in place.
        """
        rows = [(t.id, t.label, t.elapsed_time, index) for index, t in enumerate(tasks)]

        with self._locked("upsert_many_with_reorder") as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute("DELETE FROM tasks")
                conn.executemany(
                    "INSERT INTO tasks(id, label, elapsed_time, position) VALUES (?, ?, ?, ?)",
                    rows,
                )
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        logger.debug("Task set replaced count=%s", len(rows))

    def delete_one(self, task_id: int) -> None:
        """Delete a task by id; a missing id is not an error."""
        with self._locked("delete_one") as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
        logger.debug("Task delete id=%s removed=%s", task_id, cur.rowcount)

    def reset_all_timers(self) -> None:
        with self._locked("reset_all_timers") as conn:
            cur = conn.execute("UPDATE tasks SET elapsed_time = 0")
        logger.debug("Timers reset count=%s", cur.rowcount)
