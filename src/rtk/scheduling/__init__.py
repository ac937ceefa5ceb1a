"""Job scheduling for rtk-core.

Manifesto:
    A job is a named, persistent binding of an action name, its arguments
    and a time specification. The scheduler fires each job through the
    same dispatcher every other caller uses, so a scheduled action is
    resolved, type-checked and logged exactly like an immediate one.

::

    ┌──────────────┐    tick()    ┌─────────────────────────────────┐
    │  Backend     │ ───────────► │  SchedulerService               │
    │  (timing)    │              │   job table ◄──► JobRepository  │
    └──────────────┘              │        │                        │
                                  │        ▼                        │
                                  │   fire pool ──► ActionDispatcher│
                                  └─────────────────────────────────┘

Time specifications (see ``timespec``)::

    delay     10 | 10s | 5m | 2h | 1d
    interval  30 | 30s | 15m
    calendar  monday 08:30 | sun 23:00 | daily 04:00

Guardrails:
    ❌ Firing a job whose previous fire is still running
    ✅ The occurrence is skipped and counted in ``fires_skipped``
    ❌ Pausing or dropping a recurring job because its action failed
    ✅ Failures are recorded on the job and the schedule continues
    ❌ Constructing scheduler components individually
    ✅ ``create_scheduler(dispatcher, conn)`` factory function

Tags:
    rtk-core, scheduling, jobs, beat-as-poller, persistence

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, tzinfo

from rtk.framework.dispatcher import ActionDispatcher

# Models
from .models import Job, JobOutcome, JobState, JobView

# Protocol
from .protocol import BackendHealth, SchedulerBackend

# Repository
from .repository import JobRepository, StoredJob, connect

# Service
from .service import SchedulerHealth, SchedulerService, SchedulerStats

# Backends
from .thread_backend import ThreadSchedulerBackend

# Time specifications
from .timespec import TimeSpec, TimeType, parse_time_spec

__all__ = [
    # Models
    "Job",
    "JobView",
    "JobState",
    "JobOutcome",
    # Time specifications
    "TimeSpec",
    "TimeType",
    "parse_time_spec",
    # Protocol
    "SchedulerBackend",
    "BackendHealth",
    # Backends
    "ThreadSchedulerBackend",
    # Repository
    "JobRepository",
    "StoredJob",
    "connect",
    # Service
    "SchedulerService",
    "SchedulerStats",
    "SchedulerHealth",
    "create_scheduler",
]


def create_scheduler(
    dispatcher: ActionDispatcher,
    conn: sqlite3.Connection | None = None,
    interval_seconds: float = 1.0,
    max_workers: int = 4,
    tz: tzinfo = UTC,
) -> SchedulerService:
    """Factory function to create a complete scheduler service.

    Args:
        dispatcher: Dispatcher every fire goes through
        conn: Job store connection; None keeps jobs in memory only
        interval_seconds: Tick interval (default: 1s)
        max_workers: Size of the fire pool
        tz: Zone calendar times are interpreted in

    Returns:
        Configured SchedulerService

    Example:
        >>> scheduler = create_scheduler(dispatcher, connect("~/.rtk/jobs.db"))
        >>> scheduler.start()
    """
    return SchedulerService(
        dispatcher,
        backend=ThreadSchedulerBackend(),
        repository=JobRepository(conn) if conn is not None else None,
        interval_seconds=interval_seconds,
        max_workers=max_workers,
        tz=tz,
    )
