"""
Result envelope for consistent success/failure handling.

Operations that a caller may reasonably expect to fail (dispatching an
action, adding a job, running a job) return ``Ok[T]`` or ``Err[T]`` instead
of raising. Callers decide whether to retry, log, or ignore.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T]                                │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[T]      │     Utilities           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: Exc    │ • from_optional()       │
        │ • map()         │ • unwrap_or()   │ • is_result()           │
        │ • unwrap()      │                 │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> from rtk.core.result import Ok, Err
    >>> result = dispatcher.dispatch("copyFile", ["a.txt", "b.txt"])
    >>> match result:
    ...     case Ok(value):
    ...         print(value)
    ...     case Err(error):
    ...         print(error.to_dict())

Guardrails:
    ❌ DON'T: Use unwrap() without checking is_ok() first
    ✅ DO: Use unwrap_or() or pattern matching for safe extraction

Tags:
    result-pattern, error-handling, functional-programming, rtk-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from rtk.core.errors import RtkError


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful result containing a value.

    Examples:
        >>> Ok(10).map(lambda x: x * 2).unwrap()
        20
        >>> Ok(42).is_err()
        False
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or default (always returns value for Ok)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    Failed result containing an error.

    ``map`` passes the error through unchanged so a chain of operations
    stops at the first failure.

    Examples:
        >>> err = Err(ValueError("something went wrong"))
        >>> err.unwrap_or("default")
        'default'
        >>> Err(ValueError("x")).map(lambda x: x * 2).is_err()
        True
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Get default since this is Err."""
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, RtkError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def from_optional(value: T | None, error: Exception) -> Result[T]:
    """Convert an optional lookup into a Result.

    >>> from_optional({"a": 1}.get("a"), KeyError("a"))
    Ok(1)
    >>> from_optional(None, KeyError("b")).is_err()
    True
    """
    if value is None:
        return Err(error)
    return Ok(value)


def is_result(value: Any) -> bool:
    """Check whether ``value`` is an Ok or Err instance."""
    return isinstance(value, (Ok, Err))


__all__ = [
    "Ok",
    "Err",
    "Result",
    "from_optional",
    "is_result",
]
