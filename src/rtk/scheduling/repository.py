"""Job repository - persistence for scheduled jobs.

Manifesto:
    The scheduler table in memory is the source of truth while the
    process runs; the repository only makes it survive a restart. Every
    add, reschedule and removal is written through, and ``start()``
    reloads whatever is stored.

Tags:
    rtk-core, scheduling, repository, persistence, sqlite

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from rtk.core.logging import get_logger
from rtk.scheduling.models import Job

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS rtk_jobs (
    name             TEXT PRIMARY KEY,
    action_name      TEXT NOT NULL,
    action_arguments TEXT NOT NULL,
    time_type        TEXT NOT NULL,
    time_argument    TEXT NOT NULL,
    recurring        INTEGER NOT NULL,
    created_at       TEXT NOT NULL,
    next_fire_at     TEXT
)
"""

COLUMNS = (
    "name",
    "action_name",
    "action_arguments",
    "time_type",
    "time_argument",
    "recurring",
    "created_at",
    "next_fire_at",
)


@dataclass(frozen=True)
class StoredJob:
    """A job row as persisted, before its action and time spec are re-validated."""

    name: str
    action_name: str
    action_arguments: tuple[Any, ...]
    time_type: str
    time_argument: str
    recurring: bool
    created_at: datetime
    next_fire_at: datetime | None


def connect(path: Path | str) -> sqlite3.Connection:
    """Open the job store, creating parent directories as needed.

    The connection is shared between the scheduler thread and the fire
    pool; the repository serialises access to it.
    """
    if str(path) != ":memory:":
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        path = Path(path).expanduser()
    return sqlite3.connect(str(path), check_same_thread=False)


class JobRepository:
    """Repository for job persistence.

    Example:
        >>> repo = JobRepository(sqlite3.connect(":memory:"))
        >>> repo.ensure_schema()
        >>> repo.save(job)
        >>> [stored.name for stored in repo.list_all()]
        ['nightly-backup']
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(SCHEMA)
            self.conn.commit()

    def save(self, job: Job) -> None:
        """Insert or replace the row for ``job``."""
        row = (
            job.name,
            job.action_name,
            json.dumps(list(job.action_arguments)),
            job.time_type.value,
            job.time_argument,
            1 if job.recurring else 0,
            job.created_at.isoformat(),
            job.next_fire_at.isoformat() if job.next_fire_at else None,
        )
        with self._lock:
            self.conn.execute(
                f"INSERT OR REPLACE INTO rtk_jobs ({', '.join(COLUMNS)}) "
                f"VALUES ({', '.join('?' * len(COLUMNS))})",
                row,
            )
            self.conn.commit()

    def update_next_fire(self, name: str, next_fire_at: datetime | None) -> None:
        with self._lock:
            self.conn.execute(
                "UPDATE rtk_jobs SET next_fire_at = ? WHERE name = ?",
                (next_fire_at.isoformat() if next_fire_at else None, name),
            )
            self.conn.commit()

    def delete(self, name: str) -> bool:
        """Delete a job row.

        Returns:
            True if deleted, False if not found
        """
        with self._lock:
            cursor = self.conn.execute("DELETE FROM rtk_jobs WHERE name = ?", (name,))
            self.conn.commit()
        return cursor.rowcount > 0

    def get(self, name: str) -> StoredJob | None:
        with self._lock:
            cursor = self.conn.execute(
                f"SELECT {', '.join(COLUMNS)} FROM rtk_jobs WHERE name = ?", (name,)
            )
            row = cursor.fetchone()
        return self._row_to_job(row) if row else None

    def list_all(self) -> list[StoredJob]:
        with self._lock:
            cursor = self.conn.execute(f"SELECT {', '.join(COLUMNS)} FROM rtk_jobs ORDER BY name")
            rows = cursor.fetchall()
        return [self._row_to_job(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM rtk_jobs").fetchone()[0]

    def _row_to_job(self, row: tuple[Any, ...]) -> StoredJob:
        name, action_name, arguments, time_type, time_argument, recurring, created_at, next_fire_at = row
        try:
            decoded = json.loads(arguments)
        except json.JSONDecodeError:
            logger.warning("job.arguments_undecodable", job=name)
            decoded = []
        return StoredJob(
            name=name,
            action_name=action_name,
            action_arguments=tuple(decoded) if isinstance(decoded, list) else (),
            time_type=time_type,
            time_argument=time_argument,
            recurring=bool(recurring),
            created_at=datetime.fromisoformat(created_at),
            next_fire_at=datetime.fromisoformat(next_fire_at) if next_fire_at else None,
        )
