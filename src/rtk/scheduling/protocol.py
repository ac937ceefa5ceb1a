"""Scheduler backend protocol.

The scheduler runs as a beat-as-poller: a backend decides WHEN ticks
happen, ``SchedulerService._tick`` decides WHAT happens on each one
(collect due jobs, hand them to the fire pool, advance their next fire).

::

    ┌──────────────────┐    tick()    ┌──────────────────────┐
    │  Thread backend  │ ───────────► │  SchedulerService    │
    │  (default)       │              │   - collect due jobs │
    └──────────────────┘              │   - submit fires     │
    ┌──────────────────┐    tick()    │   - advance next     │
    │  Manual / tests  │ ───────────► │                      │
    └──────────────────┘              └──────────────────────┘
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

TickCallback = Callable[[], Awaitable[None]]


@runtime_checkable
class SchedulerBackend(Protocol):
    """Timing backend contract.

    A backend only calls the tick callback at the requested interval. All
    job evaluation lives in SchedulerService.

    Example (custom backend):
        >>> class ManualBackend:
        ...     name = "manual"
        ...
        ...     def start(self, tick_callback, interval_seconds=1.0):
        ...         self.tick = tick_callback
        ...
        ...     def stop(self):
        ...         pass
        ...
        ...     def health(self) -> dict:
        ...         return {"healthy": True, "backend": "manual"}
    """

    name: str

    def start(self, tick_callback: TickCallback, interval_seconds: float = 1.0) -> None:
        """Start calling ``tick_callback`` every ``interval_seconds``."""
        ...

    def stop(self) -> None:
        """Stop ticking; may wait briefly for the current tick."""
        ...

    def health(self) -> dict[str, Any]:
        """At least ``healthy``, ``backend``, ``tick_count`` and ``last_tick``."""
        ...


@dataclass
class BackendHealth:
    """Structured backend health response."""

    healthy: bool
    backend: str
    tick_count: int = 0
    last_tick: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "tick_count": self.tick_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            **self.extra,
        }
