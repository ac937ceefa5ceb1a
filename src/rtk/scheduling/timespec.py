"""Time specifications for jobs: parsing and next-fire computation.

Grammar (anything else is rejected with ``UnSchedulableError``):

    delay     <n>[s|m|h|d]        fire once, n units after creation
    interval  <n>[s|m|h|d]        fire every n units, first one interval
                                  after creation
    calendar  <day> <HH:MM>       fire at the next matching wall-clock
                                  time; <day> is monday..sunday, mon..sun,
                                  daily or everyday

``n`` is a base-10 integer greater than zero; the unit defaults to seconds.
Calendar times are interpreted in the scheduler's timezone.

    >>> parse_time_spec("interval", "5m").unwrap().duration
    datetime.timedelta(seconds=300)
    >>> parse_time_spec("delay", "-10").is_err()
    True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta, tzinfo
from enum import Enum

from rtk.core.errors import UnSchedulableError
from rtk.core.result import Err, Ok, Result

DURATION_RE = re.compile(r"^(\d+)([smhd]?)$")
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}

DAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
DAY_NAMES.update({name[:3]: index for name, index in list(DAY_NAMES.items())})
EVERY_DAY = frozenset({"daily", "everyday"})


class TimeType(str, Enum):
    """How a job's time argument is interpreted."""

    DELAY = "delay"
    INTERVAL = "interval"
    CALENDAR = "calendar"

    @property
    def recurring(self) -> bool:
        return self is not TimeType.DELAY


@dataclass(frozen=True)
class TimeSpec:
    """A validated time specification."""

    time_type: TimeType
    time_argument: str
    duration: timedelta | None = None
    weekday: int | None = None  # None with at_time set means every day
    at_time: time | None = None

    @property
    def recurring(self) -> bool:
        return self.time_type.recurring

    def first_fire(self, created_at: datetime, tz: tzinfo = UTC) -> datetime:
        """First fire time for a job created at ``created_at``."""
        if self.duration is not None:
            return created_at + self.duration
        return self._next_calendar(created_at, tz)

    def next_fire(self, previous: datetime, now: datetime, tz: tzinfo = UTC) -> datetime | None:
        """Next fire time after a fire scheduled for ``previous``.

        Interval jobs stay on their fixed boundaries; boundaries already in
        the past are coalesced into the next one after ``now``. Delay jobs
        have no next fire.
        """
        if self.time_type is TimeType.DELAY:
            return None
        if self.time_type is TimeType.INTERVAL:
            assert self.duration is not None
            upcoming = previous + self.duration
            if upcoming <= now:
                missed = (now - previous) // self.duration
                upcoming = previous + self.duration * (missed + 1)
            return upcoming
        return self._next_calendar(max(previous, now), tz)

    def _next_calendar(self, after: datetime, tz: tzinfo) -> datetime:
        assert self.at_time is not None
        local = after.astimezone(tz)
        for offset in range(8):
            day = local.date() + timedelta(days=offset)
            if self.weekday is not None and day.weekday() != self.weekday:
                continue
            candidate = datetime.combine(day, self.at_time, tzinfo=tz)
            if candidate > after:
                return candidate.astimezone(UTC)
        raise AssertionError("calendar spec without an occurrence in eight days")


def parse_duration(text: str) -> timedelta | None:
    """Parse ``<n>[s|m|h|d]``; None if malformed or not positive."""
    match = DURATION_RE.match(text.strip())
    if not match:
        return None
    count = int(match.group(1))
    if count <= 0:
        return None
    try:
        return timedelta(seconds=count * UNIT_SECONDS[match.group(2)])
    except OverflowError:
        return None


def parse_time_spec(time_type: str | TimeType, time_argument: str) -> Result[TimeSpec]:
    """Validate a (time type, time argument) pair."""
    raw_type = time_type.value if isinstance(time_type, TimeType) else str(time_type)
    argument = time_argument if isinstance(time_argument, str) else str(time_argument)

    try:
        kind = TimeType(raw_type.strip().lower())
    except ValueError:
        expected = ", ".join(t.value for t in TimeType)
        return Err(UnSchedulableError(raw_type, argument, f"time type must be one of {expected}"))

    if kind in (TimeType.DELAY, TimeType.INTERVAL):
        duration = parse_duration(argument)
        if duration is None:
            return Err(
                UnSchedulableError(
                    kind.value, argument, "duration must be a positive integer with optional s/m/h/d unit"
                )
            )
        return Ok(TimeSpec(kind, argument, duration=duration))

    tokens = argument.split()
    if len(tokens) != 2:
        return Err(UnSchedulableError(kind.value, argument, "expected '<day> <HH:MM>'"))

    day, clock = tokens[0].lower(), tokens[1]
    if day in EVERY_DAY:
        weekday = None
    elif day in DAY_NAMES:
        weekday = DAY_NAMES[day]
    else:
        return Err(UnSchedulableError(kind.value, argument, f"unknown day '{tokens[0]}'"))

    match = HHMM_RE.match(clock)
    if not match:
        return Err(UnSchedulableError(kind.value, argument, f"invalid time of day '{clock}'"))

    at_time = time(int(match.group(1)), int(match.group(2)))
    return Ok(TimeSpec(kind, argument, weekday=weekday, at_time=at_time))
