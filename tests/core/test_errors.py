"""Tests for rtk.core.errors module."""

import pytest

from rtk.core.errors import (
    ActionNotFoundError,
    ArgumentMismatchError,
    CatalogError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    HandlerFailureError,
    InvalidConfigError,
    JobExistsError,
    JobNotFoundError,
    ModuleUnreachableError,
    NameCollisionError,
    NetworkFailureError,
    RtkError,
    SchedulingError,
    TransientError,
    UnSchedulableError,
    categorize_error,
    is_retryable,
)


class TestRtkError:
    """Test the base error."""

    def test_defaults(self):
        """Base error is INTERNAL and not retryable."""
        error = RtkError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        """cause= sets __cause__ for tracebacks."""
        cause = OSError("disk full")
        error = RtkError("Write failed", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_sets_known_fields(self):
        """with_context fills typed fields and returns self."""
        error = RtkError("x")
        assert error.with_context(action="copyFile", job="nightly") is error
        assert error.context.action == "copyFile"
        assert error.context.job == "nightly"

    def test_with_context_unknown_keys_go_to_metadata(self):
        """Unknown keys land in metadata."""
        error = RtkError("x").with_context(attempt=3)
        assert error.context.metadata == {"attempt": 3}

    def test_to_dict(self):
        """to_dict includes type, category and context."""
        error = RtkError("x", cause=ValueError("inner")).with_context(action="ping")
        data = error.to_dict()
        assert data["error_type"] == "RtkError"
        assert data["category"] == "INTERNAL"
        assert data["context"] == {"action": "ping"}
        assert data["cause"] == "inner"


class TestErrorContext:
    def test_only_set_fields_are_reported(self):
        ctx = ErrorContext(host="127.0.0.1", port=2014)
        assert ctx.to_dict() == {"host": "127.0.0.1", "port": 2014}


class TestHierarchy:
    """Test categories and parents of concrete errors."""

    @pytest.mark.parametrize(
        "error, parent, category",
        [
            (NameCollisionError("copyDir", "copyDirectory", "cloneDir"), ConfigError, ErrorCategory.CONFIG),
            (InvalidConfigError("sleep_time_seconds", "too long"), ConfigError, ErrorCategory.CONFIG),
            (UnSchedulableError("delay", "-10", "negative"), SchedulingError, ErrorCategory.SCHEDULING),
            (JobExistsError("j1"), SchedulingError, ErrorCategory.SCHEDULING),
            (JobNotFoundError("j1"), SchedulingError, ErrorCategory.SCHEDULING),
            (NetworkFailureError("socket closed"), TransientError, ErrorCategory.NETWORK),
            (ModuleUnreachableError("127.0.0.1", 2014, 60), NetworkFailureError, ErrorCategory.NETWORK),
            (CatalogError("not an array"), RtkError, ErrorCategory.SOURCE),
        ],
    )
    def test_category(self, error, parent, category):
        assert isinstance(error, parent)
        assert error.category == category

    def test_name_collision_names_both_actions(self):
        error = NameCollisionError("copyDir", "copyDirectory", "cloneDir")
        assert error.name == "copyDir"
        assert "copyDirectory" in error.message
        assert "cloneDir" in error.message

    def test_argument_mismatch_records_position(self):
        error = ArgumentMismatchError("add", "argument 1: bad", expected=2, received=2, position=1)
        assert error.position == 1
        assert error.context.action == "add"

    def test_handler_failure_keeps_cause(self):
        cause = RuntimeError("boom")
        error = HandlerFailureError("explode", cause)
        assert error.cause is cause
        assert "boom" in error.message

    def test_module_unreachable_context(self):
        error = ModuleUnreachableError("10.0.0.5", 2014, 60.0)
        assert error.context.host == "10.0.0.5"
        assert error.context.port == 2014
        assert "60s" in error.message

    def test_not_found_context(self):
        assert ActionNotFoundError("nope").context.action == "nope"
        assert JobNotFoundError("nope").context.job == "nope"


class TestUtilities:
    def test_is_retryable(self):
        assert is_retryable(NetworkFailureError("x")) is True
        assert is_retryable(JobExistsError("x")) is False
        assert is_retryable(ConnectionError()) is True
        assert is_retryable(ValueError()) is False

    def test_categorize_error(self):
        assert categorize_error(CatalogError("x")) == ErrorCategory.SOURCE
        assert categorize_error(TimeoutError()) == ErrorCategory.NETWORK
        assert categorize_error(FileNotFoundError()) == ErrorCategory.STORAGE
        assert categorize_error(TypeError()) == ErrorCategory.VALIDATION
        assert categorize_error(KeyError("x")) == ErrorCategory.UNKNOWN
