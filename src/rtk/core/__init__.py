"""RTK Core -- domain-agnostic primitives shared by every toolkit component.

Architecture::

    errors.py      Structured error hierarchy (RtkError and friends)
    result.py      Result[T] envelope (Ok / Err)
    logging.py     structlog configuration and context binding
    settings.py    RtkSettings (pydantic-settings, RTK_* env vars)
    shared.py      SharedValue lock-guarded container
"""

from rtk.core.errors import (
    ActionNotFoundError,
    ArgumentMismatchError,
    ErrorCategory,
    HandlerFailureError,
    JobExistsError,
    JobNotFoundError,
    ModuleUnreachableError,
    NameCollisionError,
    NetworkFailureError,
    RtkError,
    UnSchedulableError,
)
from rtk.core.result import Err, Ok, Result

__all__ = [
    "RtkError",
    "ErrorCategory",
    "NameCollisionError",
    "ActionNotFoundError",
    "ArgumentMismatchError",
    "HandlerFailureError",
    "UnSchedulableError",
    "JobExistsError",
    "JobNotFoundError",
    "NetworkFailureError",
    "ModuleUnreachableError",
    "Ok",
    "Err",
    "Result",
]
