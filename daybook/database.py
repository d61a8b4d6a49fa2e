from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable

from .days import from_epoch_us, to_epoch_us
from .errors import PersistenceError, StoreUnavailableError
from .models import Activity, ActivityQuery

logger = logging.getLogger(__name__)


class DaybookDatabase:
    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._lock = threading.Lock()
        try:
            self._db_file.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (OSError, PersistenceError) as exc:
            raise StoreUnavailableError(f"Cannot open activity store at {self._db_file}: {exc}") from exc

    @property
    def path(self) -> Path:
        return self._db_file

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Database unavailable: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {exc}") from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS activities (
                    id TEXT PRIMARY KEY,
                    description TEXT NOT NULL CHECK (length(trim(description)) > 0),
                    created_at_us INTEGER NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at_us INTEGER,
                    is_archived INTEGER NOT NULL DEFAULT 0,
                    CHECK ((is_completed = 1) = (completed_at_us IS NOT NULL))
                );

                CREATE INDEX IF NOT EXISTS idx_activities_created_at
                ON activities(created_at_us);

                CREATE TABLE IF NOT EXISTS app_settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )
            conn.commit()

    def commit(self, records: Iterable[Activity]) -> None:
        rows = [
            (
                record.id,
                record.description,
                to_epoch_us(record.created_at),
                int(record.is_completed),
                to_epoch_us(record.completed_at) if record.completed_at is not None else None,
                int(record.is_archived),
            )
            for record in records
        ]
        if not rows:
            return
        with self._lock, self._connection() as conn:
            conn.executemany(
                """
                INSERT INTO activities(
                    id,
                    description,
                    created_at_us,
                    is_completed,
                    completed_at_us,
                    is_archived
                )
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    description = excluded.description,
                    is_completed = excluded.is_completed,
                    completed_at_us = excluded.completed_at_us,
                    is_archived = excluded.is_archived
                """,
                rows,
            )
            conn.commit()

    def query(self, criteria: ActivityQuery | None = None) -> list[Activity]:
        criteria = criteria or ActivityQuery()
        clauses: list[str] = []
        params: list[object] = []
        if criteria.created_from is not None:
            clauses.append("created_at_us >= ?")
            params.append(to_epoch_us(criteria.created_from))
        if criteria.created_before is not None:
            clauses.append("created_at_us < ?")
            params.append(to_epoch_us(criteria.created_before))
        if criteria.is_archived is not None:
            clauses.append("is_archived = ?")
            params.append(int(criteria.is_archived))
        if criteria.is_completed is not None:
            clauses.append("is_completed = ?")
            params.append(int(criteria.is_completed))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if criteria.newest_first else "ASC"
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT id, description, created_at_us, is_completed, completed_at_us, is_archived
                FROM activities
                {where}
                ORDER BY created_at_us {direction}, rowid {direction}
                """,
                params,
            ).fetchall()
        return [self._row_to_activity(row) for row in rows]

    def get(self, activity_id: str) -> Activity | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                """
                SELECT id, description, created_at_us, is_completed, completed_at_us, is_archived
                FROM activities
                WHERE id = ?
                """,
                (activity_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_activity(row)

    def delete(self, activity_id: str) -> bool:
        with self._lock, self._connection() as conn:
            cursor = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
            conn.commit()
            return cursor.rowcount > 0

    def count(self) -> int:
        with self._lock, self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM activities").fetchone()
        return int(row["total"]) if row is not None else 0

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        return str(row["value"])

    def get_setting_float(self, key: str, default: float) -> float:
        value = self.get_setting(key)
        if value is None:
            return default
        try:
            parsed = float(value)
        except ValueError:
            return default
        if parsed <= 0:
            return default
        return parsed

    def set_setting(self, key: str, value: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO app_settings(key, value)
                VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()

    def set_setting_in_background(self, key: str, value: str) -> threading.Thread:
        """Best-effort write for housekeeping state; failures are only logged."""

        def _worker() -> None:
            try:
                self.set_setting(key, value)
            except PersistenceError as exc:
                logger.warning("Background save of setting %r failed: %s", key, exc)

        thread = threading.Thread(target=_worker, name="daybook-settings-save", daemon=True)
        thread.start()
        return thread

    @staticmethod
    def _row_to_activity(row: sqlite3.Row) -> Activity:
        completed_at_us = row["completed_at_us"]
        return Activity(
            id=str(row["id"]),
            description=str(row["description"]),
            created_at=from_epoch_us(row["created_at_us"]),
            is_completed=bool(row["is_completed"]),
            completed_at=from_epoch_us(completed_at_us) if completed_at_us is not None else None,
            is_archived=bool(row["is_archived"]),
        )
