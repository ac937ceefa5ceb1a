"""
Structured error types for the remote toolkit.

Every failure the toolkit can report is an ``RtkError`` subclass carrying a
category, a retryable flag, structured context and an optional chained
cause. Public operations return these errors inside ``Err`` results rather
than raising them; only configuration mistakes made at startup (for
example two handler groups claiming the same action name) are raised.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure the caller can act on
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry action/job metadata for logging
    - **Error Chaining:** The handler's own exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                         RtkError                                 │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError          ActionError            SchedulingError     │
        │  (CONFIG)             (ACTION)               (SCHEDULING)        │
        │     │                    │                       │               │
        │  NameCollisionError   ActionNotFoundError    UnSchedulableError  │
        │  InvalidConfigError   ArgumentMismatchError  JobExistsError      │
        │                       HandlerFailureError    JobNotFoundError    │
        │                                                                  │
        │  TransientError       SourceError                                │
        │  (NETWORK, retry)     (SOURCE)                                   │
        │     │                    │                                       │
        │  NetworkFailureError  CatalogError                               │
        │     │                                                            │
        │  ModuleUnreachableError                                          │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Raise from ``dispatch`` or the scheduler's public operations
    ✅ DO: Return ``Err(<RtkError subclass>)``

    ❌ DON'T: Swallow the handler's original exception
    ✅ DO: Pass it as ``cause=`` so tracebacks stay intact

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, rtk-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    NETWORK = "NETWORK"           # Socket, DNS, heartbeat
    STORAGE = "STORAGE"           # Disk, file system

    # Source/data errors
    SOURCE = "SOURCE"             # Upstream HTTP catalog
    VALIDATION = "VALIDATION"     # Bad values

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"             # Settings, registration tables

    # Application errors
    ACTION = "ACTION"             # Resolve, coerce, invoke
    SCHEDULING = "SCHEDULING"     # Job table, time specifications

    # Internal errors
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``; anything that does not
    fit a typed field goes into ``metadata``.

    Examples:
        >>> ctx = ErrorContext(action="copyFile", job="nightly-backup")
        >>> ctx.to_dict()
        {'action': 'copyFile', 'job': 'nightly-backup'}
    """

    action: str | None = None
    job: str | None = None
    trigger_source: str | None = None
    host: str | None = None
    port: int | None = None
    url: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["action", "job", "trigger_source", "host", "port", "url"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RtkError(Exception):
    """
    Base exception for all toolkit errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely pass them explicitly.

    Examples:
        >>> error = RtkError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> error = RtkError("Fetch failed").with_context(action="getPlugins")
        >>> error.context.action
        'getPlugins'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RtkError:
        """
        Add context to this error (fluent API).

        Usage:
            return Err(JobNotFoundError(name).with_context(trigger_source="cli"))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(RtkError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkFailureError(TransientError):
    """Socket or transport failure in the heartbeat loop.

    Fatal to the monitor loop even though the condition itself may clear:
    the monitor reports it and stops instead of retrying.
    """

    default_category = ErrorCategory.NETWORK


class ModuleUnreachableError(NetworkFailureError):
    """No heartbeat reply arrived within the receive timeout."""

    def __init__(self, host: str, port: int, timeout_seconds: float):
        self.host = host
        self.port = port
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Unable to ping the Module at {host}:{port} (no reply within {timeout_seconds:g}s)",
            context=ErrorContext(host=host, port=port),
        )


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(RtkError):
    """Error from an upstream data source."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class CatalogError(SourceError):
    """The plugin catalog could not be fetched or was not a JSON array."""

    pass


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(RtkError):
    """Configuration error; fatal to startup."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class NameCollisionError(ConfigError):
    """An action name or alias is already claimed by another descriptor."""

    def __init__(self, name: str, existing: str, incoming: str):
        self.name = name
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Action name '{name}' of '{incoming}' is already registered by '{existing}'",
            context=ErrorContext(action=incoming),
        )


class InvalidConfigError(ConfigError):
    """A configuration value is out of its allowed range."""

    def __init__(self, key: str, message: str, **kwargs: Any):
        self.config_key = key
        super().__init__(f"Invalid configuration '{key}': {message}", **kwargs)


# =============================================================================
# ACTION ERRORS
# =============================================================================


class ActionError(RtkError):
    """Failure resolving or invoking an action."""

    default_category = ErrorCategory.ACTION
    default_retryable = False


class ActionNotFoundError(ActionError):
    """No action is registered under the requested name."""

    def __init__(self, name: str):
        self.action_name = name
        super().__init__(f"Action not found: {name}", context=ErrorContext(action=name))


class ArgumentMismatchError(ActionError):
    """Arguments do not fit the action's parameter shape.

    Raised before the handler runs, so no side effect has happened.
    """

    def __init__(
        self,
        action: str,
        message: str,
        *,
        expected: int | None = None,
        received: int | None = None,
        position: int | None = None,
    ):
        self.expected = expected
        self.received = received
        self.position = position
        super().__init__(
            f"Arguments for '{action}' do not match: {message}",
            context=ErrorContext(action=action),
        )


class HandlerFailureError(ActionError):
    """The handler ran and reported a failure.

    Side effects the handler already performed are not rolled back.
    """

    def __init__(self, action: str, cause: Exception):
        super().__init__(
            f"Action '{action}' failed: {cause}",
            context=ErrorContext(action=action),
            cause=cause,
        )


# =============================================================================
# SCHEDULING ERRORS
# =============================================================================


class SchedulingError(RtkError):
    """Job table or time specification error."""

    default_category = ErrorCategory.SCHEDULING
    default_retryable = False


class UnSchedulableError(SchedulingError):
    """The time specification is outside the supported grammar."""

    def __init__(self, time_type: str, time_argument: str, reason: str):
        self.time_type = time_type
        self.time_argument = time_argument
        super().__init__(f"Cannot schedule {time_type} '{time_argument}': {reason}")


class JobExistsError(SchedulingError):
    """A job with this name is already scheduled."""

    def __init__(self, name: str):
        self.job_name = name
        super().__init__(f"Job already scheduled: {name}", context=ErrorContext(job=name))


class JobNotFoundError(SchedulingError):
    """No job is scheduled under this name."""

    def __init__(self, name: str):
        self.job_name = name
        super().__init__(f"Job not found: {name}", context=ErrorContext(job=name))


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, RtkError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RtkError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RtkError",
    # Transient
    "TransientError",
    "NetworkFailureError",
    "ModuleUnreachableError",
    # Source
    "SourceError",
    "CatalogError",
    # Config
    "ConfigError",
    "NameCollisionError",
    "InvalidConfigError",
    # Action
    "ActionError",
    "ActionNotFoundError",
    "ArgumentMismatchError",
    "HandlerFailureError",
    # Scheduling
    "SchedulingError",
    "UnSchedulableError",
    "JobExistsError",
    "JobNotFoundError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
