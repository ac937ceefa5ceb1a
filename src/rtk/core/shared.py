"""Lock-guarded, explicitly owned state shared between components.

A ``SharedValue`` replaces process-wide mutable globals: the component that
owns the value is the only writer, and readers receive the reference they
were handed at wiring time. Values should be immutable (tuples, frozen
dataclasses) so a reader never observes a half-written update.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Generic, TypeVar

T = TypeVar("T")


class SharedValue(Generic[T]):
    """Single-writer, many-reader container.

    Example:
        >>> plugins: SharedValue[tuple[str, ...]] = SharedValue(())
        >>> plugins.set(("WorldEdit", "Essentials"))
        >>> plugins.get()
        ('WorldEdit', 'Essentials')
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._updated_at: datetime | None = None
        self._version = 0
        self._lock = threading.Lock()

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._updated_at = datetime.now(UTC)
            self._version += 1

    @property
    def updated_at(self) -> datetime | None:
        """When the value was last written, None if never."""
        with self._lock:
            return self._updated_at

    @property
    def version(self) -> int:
        """Number of writes so far."""
        with self._lock:
            return self._version

    def __repr__(self) -> str:
        return f"SharedValue(version={self.version})"
