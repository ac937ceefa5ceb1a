"""Threading-based scheduler backend (the default).

A daemon thread waits on a stop event with the tick interval as timeout
and runs the async tick callback with ``asyncio.run`` each time the wait
expires. ``stop()`` sets the event, so shutdown is observed within one
wait rather than after a full sleep.
"""

from __future__ import annotations

import asyncio
import threading
from datetime import UTC, datetime
from typing import Any

from rtk.core.logging import get_logger
from rtk.scheduling.protocol import BackendHealth, TickCallback

logger = get_logger(__name__)


class ThreadSchedulerBackend:
    """Daemon-thread ticker.

    Example:
        >>> backend = ThreadSchedulerBackend()
        >>> async def tick():
        ...     print("tick")
        >>> backend.start(tick, interval_seconds=1.0)
        >>> backend.stop()
    """

    name = "thread"

    def __init__(self, join_timeout: float = 5.0) -> None:
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._interval = 1.0
        self._join_timeout = join_timeout
        self._started = False
        self._lock = threading.Lock()

    def start(self, tick_callback: TickCallback, interval_seconds: float = 1.0) -> None:
        if self._started:
            logger.warning("scheduler.backend.already_started", backend=self.name)
            return

        self._interval = interval_seconds
        self._stop_event.clear()

        def _loop() -> None:
            logger.info("scheduler.backend.started", backend=self.name, interval_seconds=interval_seconds)
            while not self._stop_event.wait(interval_seconds):
                with self._lock:
                    self._tick_count += 1
                    self._last_tick = datetime.now(UTC)

                try:
                    asyncio.run(tick_callback())
                except Exception as e:
                    logger.exception("scheduler.backend.tick_failed", error_message=str(e))

            logger.info("scheduler.backend.stopped", backend=self.name)

        self._thread = threading.Thread(target=_loop, daemon=True, name="rtk-scheduler")
        self._thread.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return

        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._join_timeout)
            if self._thread.is_alive():
                logger.warning("scheduler.backend.unclean_stop", backend=self.name)

        self._started = False

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def get_health(self) -> BackendHealth:
        with self._lock:
            return BackendHealth(
                healthy=self.is_running,
                backend=self.name,
                tick_count=self._tick_count,
                last_tick=self._last_tick,
                extra={"interval_seconds": self._interval},
            )

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick
