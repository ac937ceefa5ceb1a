"""
Action dispatcher.

Resolves an action name through the registry, coerces the caller's loosely
typed positional arguments against the action's parameter shape, and
invokes exactly one handler. Every outcome comes back as a Result:

    Ok(value)                     handler returned value
    Err(ActionNotFoundError)      no such name
    Err(ArgumentMismatchError)    wrong arity or uncoercible argument;
                                  the handler was not called
    Err(HandlerFailureError)      the handler raised, or returned an Err

``dispatch`` never raises. It performs no queuing or concurrency limiting
of its own; callers that want bounded concurrency (the scheduler's worker
pool) apply it themselves.
"""

import threading
import traceback
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from rtk.core.errors import ArgumentMismatchError, HandlerFailureError, categorize_error
from rtk.core.logging import LogContext, get_logger
from rtk.core.result import Err, Ok, Result, is_result
from rtk.framework.params import CoercionError, coerce
from rtk.framework.registry import ActionDescriptor, ActionRegistry

log = get_logger(__name__)


class TriggerSource(str, Enum):
    """Source that triggered the dispatch."""

    DIRECT = "direct"
    SCHEDULER = "scheduler"
    MANUAL = "manual"
    CLI = "cli"


@dataclass
class DispatchStats:
    """Counters for dispatch outcomes."""

    dispatched: int = 0
    succeeded: int = 0
    not_found: int = 0
    mismatched: int = 0
    failed: int = 0


class ActionDispatcher:
    """
    Dispatcher for action invocations.

    Example:
        >>> dispatcher = ActionDispatcher(registry)
        >>> dispatcher.dispatch("copyFile", ["a.txt", "b.txt"])
        Ok(True)
        >>> dispatcher.dispatch("copyFile", ["a.txt"]).is_err()
        True
    """

    def __init__(self, registry: ActionRegistry) -> None:
        self.registry = registry
        self._stats = DispatchStats()
        self._stats_lock = threading.Lock()

    def dispatch(
        self,
        name: str,
        args: Sequence[Any] = (),
        source: TriggerSource = TriggerSource.DIRECT,
    ) -> Result[Any]:
        """
        Resolve ``name`` and invoke its handler with ``args``.

        Args:
            name: Canonical action name or alias
            args: Positional arguments, coerced against the parameter shape
            source: What triggered this dispatch (for logging)

        Returns:
            Ok with the handler's return value, or Err with a typed error
        """
        self._count("dispatched")

        with LogContext(action=name, trigger_source=source.value):
            resolved = self.registry.resolve(name)
            if resolved.is_err():
                self._count("not_found")
                log.warning("dispatch.action_not_found")
                return resolved

            descriptor = resolved.unwrap()
            coerced = self._coerce(descriptor, name, args)
            if coerced.is_err():
                self._count("mismatched")
                log.warning("dispatch.argument_mismatch", error_message=coerced.error.message)
                return coerced

            return self._invoke(descriptor, name, coerced.unwrap())

    def _coerce(
        self, descriptor: ActionDescriptor, name: str, args: Sequence[Any]
    ) -> Result[list[Any]]:
        if isinstance(args, (str, bytes)) or not isinstance(args, Sequence):
            return Err(ArgumentMismatchError(name, "arguments must be a positional sequence"))

        if len(args) != descriptor.arity:
            return Err(
                ArgumentMismatchError(
                    name,
                    f"expected {descriptor.arity} argument(s), got {len(args)}",
                    expected=descriptor.arity,
                    received=len(args),
                )
            )

        values = []
        for position, (tag, value) in enumerate(zip(descriptor.parameter_shape, args)):
            try:
                values.append(coerce(tag, value))
            except CoercionError as e:
                return Err(
                    ArgumentMismatchError(
                        name,
                        f"argument {position}: {e}",
                        expected=descriptor.arity,
                        received=len(args),
                        position=position,
                    )
                )
        return Ok(values)

    def _invoke(self, descriptor: ActionDescriptor, name: str, values: list[Any]) -> Result[Any]:
        try:
            value = descriptor.invoke(*values)
        except Exception as e:
            self._count("failed")
            log.error(
                "dispatch.handler_failed",
                canonical=descriptor.canonical_name,
                error_type=type(e).__name__,
                error_message=str(e),
                error_category=categorize_error(e).value,
                error_stack=traceback.format_exc(),
            )
            return Err(HandlerFailureError(descriptor.canonical_name, e))

        if is_result(value):
            if value.is_err():
                self._count("failed")
                log.warning(
                    "dispatch.handler_reported_failure",
                    canonical=descriptor.canonical_name,
                    error_message=str(value.error),
                )
                return Err(HandlerFailureError(descriptor.canonical_name, value.error))
            value = value.unwrap()

        self._count("succeeded")
        log.info("dispatch.completed", canonical=descriptor.canonical_name)
        return Ok(value)

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + 1)

    def get_stats(self) -> DispatchStats:
        with self._stats_lock:
            return replace(self._stats)
