"""
Structured logging for the remote toolkit.

All components log through structlog with dotted event names
(``dispatch.completed``, ``job.fired``, ``module.unreachable``) and keyword
fields instead of formatted strings. Context such as the action being
dispatched or the job being fired is bound with ``LogContext`` and merged
into every event logged inside the block, including from handler code.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="rtk")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. add_service_metadata
          5. JSONRenderer (ECS names) | ConsoleRenderer (tty)

Examples:
    >>> from rtk.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> log = get_logger(__name__)
    >>> log.info("job.added", job="backup", action="copyDirectory")

Guardrails:
    - Auto-detects JSON vs console based on TTY
    - Service name stored globally (set once at startup)

Tags:
    logging, structlog, observability, rtk-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


_SERVICE_NAME = "rtk"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "rtk",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(job="backup", trigger_source="scheduler"):
            log.info("job.firing")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "LogContext",
]
