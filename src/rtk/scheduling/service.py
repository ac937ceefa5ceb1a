"""Scheduler service - the job table and its firing loop.

Manifesto:
    Jobs bind an action name and its arguments to a time specification.
    The service owns the job table (the single source of truth, guarded
    by one lock), a timing backend that ticks it, and a bounded worker
    pool that runs the fires so a slow action never delays another job.
    Every fire goes through the same dispatcher any other caller uses.

Tags:
    rtk-core, scheduling, orchestrator, beat-as-poller, service

Doc-Types:
    api-reference, architecture-diagram

::

    ┌───────────────────────────────────────────────────────────────────┐
    │                        SchedulerService                           │
    │                                                                   │
    │   backend ──tick()──► _tick()                                     │
    │                          1. collect due PENDING jobs (lock held)  │
    │                          2. mark FIRING, advance next_fire_at     │
    │                          3. submit each fire to the worker pool   │
    │                                                                   │
    │   worker pool ──► _fire(job)                                      │
    │                          dispatcher.dispatch(action, args)        │
    │                          recurring → PENDING                      │
    │                          one-shot  → COMPLETED, removed           │
    │                                                                   │
    │   add_job / remove_job / list_jobs / run_job   (caller threads)   │
    └───────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, tzinfo
from typing import Any

from rtk.core.errors import (
    ArgumentMismatchError,
    JobExistsError,
    JobNotFoundError,
    SchedulingError,
    UnSchedulableError,
)
from rtk.core.logging import LogContext, get_logger
from rtk.core.result import Err, Ok, Result
from rtk.framework.dispatcher import ActionDispatcher, TriggerSource
from rtk.scheduling.models import Job, JobOutcome, JobState, JobView
from rtk.scheduling.protocol import BackendHealth, SchedulerBackend
from rtk.scheduling.repository import JobRepository, StoredJob
from rtk.scheduling.timespec import TimeType, parse_time_spec

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class SchedulerStats:
    """Statistics for scheduler service."""

    tick_count: int = 0
    fires_submitted: int = 0
    fires_succeeded: int = 0
    fires_failed: int = 0
    fires_skipped: int = 0
    fires_cancelled: int = 0
    manual_runs: int = 0
    last_tick: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick_count": self.tick_count,
            "fires_submitted": self.fires_submitted,
            "fires_succeeded": self.fires_succeeded,
            "fires_failed": self.fires_failed,
            "fires_skipped": self.fires_skipped,
            "fires_cancelled": self.fires_cancelled,
            "manual_runs": self.manual_runs,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "last_error": self.last_error,
        }


@dataclass
class SchedulerHealth:
    """Health status for scheduler service."""

    healthy: bool
    backend: BackendHealth | dict
    jobs: int = 0
    in_flight: int = 0
    last_tick: datetime | None = None
    stats: SchedulerStats = field(default_factory=SchedulerStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend.to_dict() if isinstance(self.backend, BackendHealth) else self.backend,
            "jobs": self.jobs,
            "in_flight": self.in_flight,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "stats": self.stats.to_dict(),
        }


class SchedulerService:
    """Job table plus beat-as-poller firing loop.

    Example:
        >>> service = SchedulerService(
        ...     dispatcher,
        ...     backend=ThreadSchedulerBackend(),
        ...     repository=JobRepository(connect("~/.rtk/jobs.db")),
        ... )
        >>> service.start()
        >>> service.add_job("backup", "copyFile", ["a.txt", "b.txt"], "delay", "10")
        Ok(JobView(name='backup', ...))
        >>> service.stop()
    """

    def __init__(
        self,
        dispatcher: ActionDispatcher,
        backend: SchedulerBackend | None = None,
        repository: JobRepository | None = None,
        *,
        interval_seconds: float = 1.0,
        max_workers: int = 4,
        tz: tzinfo = UTC,
        clock: Callable[[], datetime] = _utcnow,
        completed_history: int = 100,
    ) -> None:
        """Initialize scheduler service.

        Args:
            dispatcher: Dispatcher every fire goes through
            backend: Timing backend; None means ticks are driven by the caller
            repository: Job store; None keeps jobs in memory only
            interval_seconds: Tick interval
            max_workers: Size of the fire pool
            tz: Zone calendar times are interpreted in
            clock: Source of the current (aware, UTC) time
            completed_history: How many completed one-shot jobs to remember
        """
        self.dispatcher = dispatcher
        self.backend = backend
        self.repository = repository
        self.interval = interval_seconds
        self.max_workers = max_workers
        self.tz = tz
        self._clock = clock

        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()
        self._completed: deque[JobView] = deque(maxlen=completed_history)
        self._in_flight: set[Future] = set()
        self._executor: ThreadPoolExecutor | None = None
        self._stats = SchedulerStats()
        self._running = False
        self._loaded = False

    # === Lifecycle ===

    def load(self) -> int:
        """Restore persisted jobs into the table.

        Jobs whose action no longer resolves or whose time specification no
        longer parses are logged and skipped. Safe to call more than once.

        Returns:
            Number of jobs restored
        """
        if self.repository is None:
            self._loaded = True
            return 0

        self.repository.ensure_schema()
        restored = 0
        for stored in self.repository.list_all():
            job = self._restore(stored)
            if job is None:
                continue
            with self._lock:
                if job.name in self._jobs:
                    continue
                self._jobs[job.name] = job
            restored += 1

        self._loaded = True
        logger.info("scheduler.jobs_loaded", count=restored)
        return restored

    def _restore(self, stored: StoredJob) -> Job | None:
        if self.dispatcher.registry.resolve(stored.action_name).is_err():
            logger.warning("job.restore_skipped", job=stored.name, reason="unknown action", action=stored.action_name)
            return None
        parsed = parse_time_spec(stored.time_type, stored.time_argument)
        if parsed.is_err():
            logger.warning("job.restore_skipped", job=stored.name, reason=parsed.error.message)
            return None
        spec = parsed.unwrap()
        next_fire_at = stored.next_fire_at
        if next_fire_at is None:
            try:
                next_fire_at = spec.first_fire(stored.created_at, self.tz)
            except OverflowError:
                logger.warning("job.restore_skipped", job=stored.name, reason="first fire time is out of range")
                return None
        return Job(
            name=stored.name,
            action_name=stored.action_name,
            action_arguments=stored.action_arguments,
            spec=spec,
            created_at=stored.created_at,
            next_fire_at=next_fire_at,
        )

    def start(self) -> None:
        """Load persisted jobs and begin the backend tick loop."""
        if self._running:
            logger.warning("scheduler.already_running")
            return

        if not self._loaded:
            self.load()

        self._ensure_executor()
        if self.backend is not None:
            self.backend.start(self._tick, self.interval)
        self._running = True
        logger.info(
            "scheduler.started",
            backend=self.backend.name if self.backend else None,
            interval_seconds=self.interval,
            max_workers=self.max_workers,
        )

    def stop(self) -> None:
        """Stop ticking and cancel queued fires.

        Fires already running are not waited for; use ``drain`` for that.
        """
        if self._running and self.backend is not None:
            self.backend.stop()

        # the pool also exists when ticks are driven by hand
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

        if self._running:
            self._running = False
            logger.info("scheduler.stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight fires.

        Returns:
            True if nothing is left in flight
        """
        with self._lock:
            pending = list(self._in_flight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="rtk-fire")
        return self._executor

    # === Job table ===

    def add_job(
        self,
        name: str,
        action_name: str,
        args: Sequence[Any] | str,
        time_type: str | TimeType,
        time_argument: str,
    ) -> Result[JobView]:
        """Schedule ``action_name(*args)`` under ``name``.

        Args:
            name: Unique job name
            action_name: Action to dispatch; must resolve now
            args: Positional arguments, or a JSON array string
            time_type: ``delay``, ``interval`` or ``calendar``
            time_argument: Argument in the grammar of ``time_type``

        Returns:
            Ok(JobView) or Err with JobExistsError, ActionNotFoundError,
            UnSchedulableError or ArgumentMismatchError. A rejected job
            leaves the table unchanged.
        """
        if not isinstance(name, str) or not name.strip():
            return Err(SchedulingError("Job name must be a non-empty string"))

        with self._lock:
            if name in self._jobs:
                return Err(JobExistsError(name))

        resolved = self.dispatcher.registry.resolve(action_name)
        if resolved.is_err():
            return Err(resolved.error.with_context(job=name))

        parsed = parse_time_spec(time_type, time_argument)
        if parsed.is_err():
            return Err(parsed.error.with_context(job=name, action=action_name))

        arguments = _job_arguments(action_name, args)
        if arguments.is_err():
            return Err(arguments.error.with_context(job=name))

        spec = parsed.unwrap()
        created_at = self._clock()
        try:
            first_fire = spec.first_fire(created_at, self.tz)
        except OverflowError:
            error = UnSchedulableError(spec.time_type.value, spec.time_argument, "first fire time is out of range")
            return Err(error.with_context(job=name, action=action_name))

        job = Job(
            name=name,
            action_name=action_name,
            action_arguments=arguments.unwrap(),
            spec=spec,
            created_at=created_at,
            next_fire_at=first_fire,
        )

        with self._lock:
            if name in self._jobs:
                return Err(JobExistsError(name))
            self._jobs[name] = job
            view = job.view()

        if self.repository is not None:
            try:
                self.repository.save(job)
            except sqlite3.Error as e:
                with self._lock:
                    if self._jobs.get(name) is job:
                        del self._jobs[name]
                logger.error("job.persist_failed", job=name, error_message=str(e))
                return Err(SchedulingError(f"Could not persist job {name}", cause=e))

        logger.info(
            "job.added",
            job=name,
            action=action_name,
            time_type=spec.time_type.value,
            time_argument=spec.time_argument,
            next_fire_at=view.next_fire_at.isoformat() if view.next_fire_at else None,
        )
        return Ok(view)

    def remove_job(self, name: str) -> Result[bool]:
        """Remove a job; unknown names are not an error.

        A fire already running is not interrupted, but nothing fires again.

        Returns:
            Ok(True) if a job was removed, Ok(False) otherwise, or Err with
            SchedulingError if the store could not be updated
        """
        with self._lock:
            job = self._jobs.pop(name, None)
            if job is not None:
                job.state = JobState.REMOVED
                job.next_fire_at = None

        stored = False
        if self.repository is not None:
            try:
                stored = self.repository.delete(name)
            except sqlite3.Error as e:
                logger.error("job.persist_failed", job=name, error_message=str(e))
                return Err(SchedulingError(f"Could not remove job {name}", cause=e))
        removed = job is not None or stored
        if removed:
            logger.info("job.removed", job=name)
        return Ok(removed)

    def list_jobs(self) -> list[JobView]:
        """Snapshot of the table, sorted by name."""
        with self._lock:
            return [self._jobs[name].view() for name in sorted(self._jobs)]

    def get_job(self, name: str) -> JobView | None:
        with self._lock:
            job = self._jobs.get(name)
            return job.view() if job else None

    def completed_jobs(self) -> list[JobView]:
        """One-shot jobs that have fired, oldest first."""
        with self._lock:
            return list(self._completed)

    def run_job(self, name: str) -> Result[Any]:
        """Dispatch a job's action now, in the caller's thread.

        The job's schedule (next fire, fire count) is left alone.
        """
        with self._lock:
            job = self._jobs.get(name)
            if job is None:
                return Err(JobNotFoundError(name))
            action_name, arguments = job.action_name, job.action_arguments
            self._stats.manual_runs += 1

        with LogContext(job=name):
            return self.dispatcher.dispatch(action_name, arguments, TriggerSource.MANUAL)

    # === Tick processing ===

    async def _tick(self) -> None:
        """Single scheduler tick: hand every due job to the fire pool."""
        now = self._clock()
        due: list[tuple[Job, datetime]] = []

        with self._lock:
            self._stats.tick_count += 1
            self._stats.last_tick = now

            for name in sorted(self._jobs):
                job = self._jobs[name]
                if not job.is_due(now):
                    continue
                scheduled = job.next_fire_at
                job.next_fire_at = job.spec.next_fire(scheduled, now, self.tz)
                if job.state is JobState.FIRING:
                    self._stats.fires_skipped += 1
                    logger.warning("job.skipped_in_flight", job=name, scheduled_at=scheduled.isoformat())
                    continue
                job.state = JobState.FIRING
                due.append((job, scheduled))

        for job, scheduled in due:
            if job.recurring:
                self._persist_next_fire(job)
            self._submit(job, scheduled)

    def _submit(self, job: Job, scheduled: datetime) -> None:
        try:
            future = self._ensure_executor().submit(self._fire, job, scheduled)
        except RuntimeError as e:
            # pool shut down between collection and submission
            with self._lock:
                self._release(job, scheduled)
                self._stats.last_error = str(e)
            logger.warning("job.submit_failed", job=job.name, error_message=str(e))
            return

        with self._lock:
            self._in_flight.add(future)
            self._stats.fires_submitted += 1
        future.add_done_callback(lambda f: self._on_fire_done(job, scheduled, f))

    def _fire(self, job: Job, scheduled: datetime) -> Result[Any]:
        with LogContext(job=job.name):
            logger.info("job.fired", scheduled_at=scheduled.isoformat())
            result = self.dispatcher.dispatch(job.action_name, job.action_arguments, TriggerSource.SCHEDULER)
            self._finish(job, result)
        return result

    def _finish(self, job: Job, result: Result[Any]) -> None:
        fired_at = self._clock()
        with self._lock:
            if result.is_ok():
                self._stats.fires_succeeded += 1
            else:
                self._stats.fires_failed += 1
                self._stats.last_error = str(result.error)

            if self._jobs.get(job.name) is not job:
                # removed while in flight
                return

            job.last_fired_at = fired_at
            job.fire_count += 1
            job.last_outcome = JobOutcome.SUCCEEDED if result.is_ok() else JobOutcome.FAILED
            job.last_error = None if result.is_ok() else str(result.error)

            if job.recurring:
                job.state = JobState.PENDING
            else:
                job.state = JobState.COMPLETED
                del self._jobs[job.name]
                self._completed.append(job.view())

        if result.is_err():
            logger.warning("job.fire_failed", error_message=str(result.error))

        if job.recurring:
            return
        if self.repository is not None:
            try:
                self.repository.delete(job.name)
            except sqlite3.Error as e:
                logger.error("job.persist_failed", error_message=str(e))
        logger.info("job.completed", fire_count=job.fire_count)

    def _on_fire_done(self, job: Job, scheduled: datetime, future: Future) -> None:
        with self._lock:
            self._in_flight.discard(future)
            if future.cancelled():
                self._stats.fires_cancelled += 1
                self._release(job, scheduled)

    def _release(self, job: Job, scheduled: datetime) -> None:
        # Caller holds the lock. A one-shot job keeps its fire time so it is
        # retried after a restart.
        if self._jobs.get(job.name) is job and job.state is JobState.FIRING:
            job.state = JobState.PENDING
            if not job.recurring:
                job.next_fire_at = scheduled

    def _persist_next_fire(self, job: Job) -> None:
        if self.repository is None:
            return
        try:
            self.repository.update_next_fire(job.name, job.next_fire_at)
        except sqlite3.Error as e:
            logger.error("job.persist_failed", job=job.name, error_message=str(e))

    # === Health & stats ===

    def health(self) -> SchedulerHealth:
        backend_health = self.backend.health() if self.backend else {"healthy": True, "backend": "manual"}
        with self._lock:
            return SchedulerHealth(
                healthy=self._running and backend_health.get("healthy", False),
                backend=backend_health,
                jobs=len(self._jobs),
                in_flight=len(self._in_flight),
                last_tick=self._stats.last_tick,
                stats=replace(self._stats),
            )

    def get_stats(self) -> SchedulerStats:
        with self._lock:
            return replace(self._stats)

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = SchedulerStats()


def _job_arguments(action_name: str, args: Sequence[Any] | str) -> Result[tuple[Any, ...]]:
    """Accept a positional sequence or a JSON array string."""
    if isinstance(args, str):
        try:
            args = json.loads(args) if args.strip() else []
        except (json.JSONDecodeError, RecursionError) as e:
            return Err(ArgumentMismatchError(action_name, f"job arguments are not valid JSON: {e}"))
        if not isinstance(args, list):
            return Err(ArgumentMismatchError(action_name, "job arguments must be a JSON array"))
    if isinstance(args, bytes) or not isinstance(args, Sequence):
        return Err(ArgumentMismatchError(action_name, "job arguments must be a positional sequence"))
    return Ok(tuple(args))
