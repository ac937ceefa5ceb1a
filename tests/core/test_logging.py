"""Tests for rtk.core.logging."""

import structlog

from rtk.core.logging import LogContext, bind_context, clear_context, configure_logging, get_logger


class TestLogContext:
    def test_binds_and_restores(self):
        """LogContext binds for its block and restores the previous values."""
        clear_context()
        bind_context(action="outer")
        with LogContext(action="inner", job="j1"):
            bound = structlog.contextvars.get_contextvars()
            assert bound == {"action": "inner", "job": "j1"}
        assert structlog.contextvars.get_contextvars() == {"action": "outer"}
        clear_context()

    def test_nested(self):
        clear_context()
        with LogContext(job="a"):
            with LogContext(job="b"):
                assert structlog.contextvars.get_contextvars()["job"] == "b"
            assert structlog.contextvars.get_contextvars()["job"] == "a"
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigure:
    def test_json_logging_emits(self, capsys):
        """Configured loggers render without raising."""
        configure_logging(level="DEBUG", json_format=True, service="rtk-test")
        get_logger("rtk.test").info("test.event", value=1)
        structlog.reset_defaults()

    def test_console_logging(self):
        configure_logging(level="WARNING", json_format=False)
        get_logger("rtk.test").warning("test.warning")
        structlog.reset_defaults()
