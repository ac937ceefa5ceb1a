"""Job records held by the scheduler table."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from rtk.scheduling.timespec import TimeSpec, TimeType


class JobState(str, Enum):
    """Lifecycle of one job."""

    PENDING = "pending"
    FIRING = "firing"
    COMPLETED = "completed"
    REMOVED = "removed"


class JobOutcome(str, Enum):
    """Result of the most recent fire."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Job:
    """Mutable scheduler entry. Only the scheduler mutates it, under its lock."""

    name: str
    action_name: str
    action_arguments: tuple[Any, ...]
    spec: TimeSpec
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    next_fire_at: datetime | None = None
    state: JobState = JobState.PENDING
    last_fired_at: datetime | None = None
    last_outcome: JobOutcome | None = None
    last_error: str | None = None
    fire_count: int = 0

    @property
    def time_type(self) -> TimeType:
        return self.spec.time_type

    @property
    def time_argument(self) -> str:
        return self.spec.time_argument

    @property
    def recurring(self) -> bool:
        return self.spec.recurring

    def is_due(self, now: datetime) -> bool:
        return self.next_fire_at is not None and self.next_fire_at <= now

    def view(self) -> JobView:
        return JobView(
            name=self.name,
            action_name=self.action_name,
            action_arguments=copy.deepcopy(self.action_arguments),
            time_type=self.time_type.value,
            time_argument=self.time_argument,
            recurring=self.recurring,
            state=self.state.value,
            next_fire_at=self.next_fire_at,
            last_fired_at=self.last_fired_at,
            last_outcome=self.last_outcome.value if self.last_outcome else None,
            fire_count=self.fire_count,
        )


@dataclass(frozen=True)
class JobView:
    """Read-only snapshot of a job, safe to hand out of the scheduler."""

    name: str
    action_name: str
    action_arguments: tuple[Any, ...]
    time_type: str
    time_argument: str
    recurring: bool
    state: str = JobState.PENDING.value
    next_fire_at: datetime | None = None
    last_fired_at: datetime | None = None
    last_outcome: str | None = None
    fire_count: int = 0

    def to_fields(self) -> list[Any]:
        """Outward field order: ``[action, [arguments...], time type, time argument]``."""
        return [self.action_name, list(self.action_arguments), self.time_type, self.time_argument]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "action_name": self.action_name,
            "action_arguments": list(self.action_arguments),
            "time_type": self.time_type,
            "time_argument": self.time_argument,
            "recurring": self.recurring,
            "state": self.state,
            "next_fire_at": self.next_fire_at.isoformat() if self.next_fire_at else None,
            "last_fired_at": self.last_fired_at.isoformat() if self.last_fired_at else None,
            "last_outcome": self.last_outcome,
            "fire_count": self.fire_count,
        }
