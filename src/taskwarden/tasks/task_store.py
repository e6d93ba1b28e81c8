# tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.errors import TaskError
from .task_models import ScheduledTaskInfo, datetime_to_ms, utc_now

logger = logging.getLogger(__name__)

_LAST_CLEANUP_KEY = "last_cleanup"


class TaskStore:
    """
    SQLite store for ScheduledTaskInfo records.

    Each record is kept as its JSON map under the task id. Rows keep their
    original position when re-saved, so load_all_tasks() returns tasks in
    first-saved order. A small meta table remembers when cleanup last ran.

    Errors from SQLite or from decoding a stored record are raised as
    TaskError(PERSISTENCE_FAILED) with the attempted operation name.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        cleanup_interval: timedelta = timedelta(hours=24),
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._cleanup_interval = cleanup_interval
        with self._operation("open task store"):
            self._ensure_schema()
        logger.info("TaskStore ready db=%s", self._db_path)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        try:
            yield
        except TaskError:
            raise
        except (sqlite3.Error, OSError, KeyError, TypeError, ValueError) as exc:
            logger.debug("TaskStore %s failed: %s", name, exc)
            raise TaskError.persistence(name, str(exc) or type(exc).__name__) from exc

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS scheduled_tasks (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id TEXT NOT NULL UNIQUE,
                    payload TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_scheduled_tasks_active ON scheduled_tasks(is_active)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_info(row: sqlite3.Row) -> ScheduledTaskInfo:
        raw = json.loads(row["payload"])
        if not isinstance(raw, dict):
            raise ValueError(f"stored record for {row['task_id']!r} is not an object")
        return ScheduledTaskInfo.from_map(raw)

    @staticmethod
    def _get_meta(conn: sqlite3.Connection, key: str) -> str | None:
        row = conn.execute("SELECT value FROM store_meta WHERE key = ?", (key,)).fetchone()
        return None if row is None else str(row["value"])

    @staticmethod
    def _set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """
            INSERT INTO store_meta(key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )

    # ---- public API ----

    def save_task(self, info: ScheduledTaskInfo) -> None:
        with self._operation("save task"):
            payload = info.to_json()
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO scheduled_tasks(task_id, payload, is_active, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(task_id) DO UPDATE SET
                        payload = excluded.payload,
                        is_active = excluded.is_active,
                        updated_at = excluded.updated_at
                    """,
                    (info.id, payload, 1 if info.is_active else 0, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        logger.debug(
            "Task saved id=%s active=%s executions=%s failures=%s",
            info.id,
            info.is_active,
            info.execution_count,
            info.failure_count,
        )

    def load_task(self, task_id: str) -> ScheduledTaskInfo | None:
        with self._operation("load task"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT task_id, payload FROM scheduled_tasks WHERE task_id = ?",
                    (task_id,),
                ).fetchone()
                return self._row_to_info(row) if row else None
            finally:
                conn.close()

    def load_all_tasks(self) -> list[ScheduledTaskInfo]:
        with self._operation("load all tasks"):
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT task_id, payload FROM scheduled_tasks ORDER BY seq ASC"
                ).fetchall()
                return [self._row_to_info(r) for r in rows]
            finally:
                conn.close()

    def remove_task(self, task_id: str) -> None:
        with self._operation("remove task"):
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM scheduled_tasks WHERE task_id = ?", (task_id,))
                conn.commit()
            finally:
                conn.close()

    def clear_all_tasks(self) -> None:
        with self._operation("clear all tasks"):
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM scheduled_tasks")
                conn.commit()
            finally:
                conn.close()
        logger.info("TaskStore cleared")

    def count_tasks(self) -> int:
        with self._operation("count tasks"):
            conn = self._get_conn()
            try:
                (n,) = conn.execute("SELECT COUNT(*) FROM scheduled_tasks").fetchone()
                return int(n)
            finally:
                conn.close()

    # Counter helpers: load, change one field, save. Two concurrent updates of
    # the same id can lose one of them.

    def update_task_execution(self, task_id: str, *, now: datetime | None = None) -> None:
        with self._operation("update task execution"):
            info = self.load_task(task_id)
            if info is None:
                return
            self.save_task(
                replace(
                    info,
                    last_executed=now or utc_now(),
                    execution_count=info.execution_count + 1,
                )
            )

    def update_task_failure(self, task_id: str) -> None:
        with self._operation("update task failure"):
            info = self.load_task(task_id)
            if info is None:
                return
            self.save_task(replace(info, failure_count=info.failure_count + 1))

    def update_task_status(self, task_id: str, is_active: bool) -> None:
        with self._operation("update task status"):
            info = self.load_task(task_id)
            if info is None:
                return
            self.save_task(replace(info, is_active=is_active))

    def cleanup_old_tasks(
        self,
        *,
        max_age: timedelta = timedelta(days=30),
        now: datetime | None = None,
    ) -> list[str]:
        """
        Remove inactive records that never ran or last ran before now - max_age.

        Runs at most once per cleanup interval; returns the removed ids
        (empty when skipped).
        """
        now = now or utc_now()
        now_ms = datetime_to_ms(now)
        with self._operation("cleanup old tasks"):
            conn = self._get_conn()
            try:
                last_cleanup = int(self._get_meta(conn, _LAST_CLEANUP_KEY) or 0)
            finally:
                conn.close()

            interval_ms = int(self._cleanup_interval.total_seconds() * 1000)
            if now_ms - last_cleanup < interval_ms:
                logger.debug("Cleanup skipped; last run at %s", last_cleanup)
                return []

            cutoff = now - max_age
            stale = [
                info.id
                for info in self.load_all_tasks()
                if not info.is_active
                and (info.last_executed is None or info.last_executed < cutoff)
            ]
            for task_id in stale:
                self.remove_task(task_id)

            conn = self._get_conn()
            try:
                self._set_meta(conn, _LAST_CLEANUP_KEY, str(now_ms))
                conn.commit()
            finally:
                conn.close()

        if stale:
            logger.info("TaskStore cleanup removed %d stale task(s): %s", len(stale), stale)
        return stale

    def get_storage_stats(self) -> dict[str, Any]:
        with self._operation("get storage stats"):
            tasks = self.load_all_tasks()
            conn = self._get_conn()
            try:
                last_cleanup = self._get_meta(conn, _LAST_CLEANUP_KEY)
            finally:
                conn.close()

        active = sum(1 for t in tasks if t.is_active)
        return {
            "totalTasks": len(tasks),
            "activeTasks": active,
            "inactiveTasks": len(tasks) - active,
            "totalExecutions": sum(t.execution_count for t in tasks),
            "totalFailures": sum(t.failure_count for t in tasks),
            "lastCleanup": int(last_cleanup) if last_cleanup is not None else None,
        }
