"""Tests for rtk.core.result module."""

import pytest

from rtk.core.errors import ActionNotFoundError
from rtk.core.result import Err, Ok, from_optional, is_result


class TestOk:
    """Test Ok class."""

    def test_create_ok(self):
        """Create Ok with value."""
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap_or(self):
        """unwrap_or returns value for Ok."""
        assert Ok(10).unwrap_or(99) == 10

    def test_map_chaining(self):
        """map can be chained."""
        assert Ok(3).map(lambda x: x * 2).map(lambda x: x + 1).unwrap() == 7

    def test_to_dict_and_repr(self):
        assert Ok("x").to_dict() == {"ok": True, "value": "x"}
        assert repr(Ok(True)) == "Ok(True)"


class TestErr:
    """Test Err class."""

    def test_unwrap_raises(self):
        """unwrap raises the contained error."""
        with pytest.raises(ActionNotFoundError):
            Err(ActionNotFoundError("nope")).unwrap()

    def test_unwrap_or(self):
        assert Err(ValueError("x")).unwrap_or("default") == "default"

    def test_map_short_circuits(self):
        """map does not call the function."""
        calls = []
        result = Err(ValueError("x")).map(calls.append).map(calls.append)
        assert result.is_err()
        assert calls == []

    def test_to_dict_uses_rtk_error_details(self):
        data = Err(ActionNotFoundError("nope")).to_dict()
        assert data["ok"] is False
        assert data["error"]["error_type"] == "ActionNotFoundError"
        assert data["error"]["category"] == "ACTION"

    def test_to_dict_plain_exception(self):
        assert Err(KeyError("k")).to_dict()["error"]["error_type"] == "KeyError"


class TestHelpers:
    def test_from_optional(self):
        assert from_optional({"a": 1}.get("a"), KeyError("a")) == Ok(1)
        assert from_optional(None, KeyError("b")).is_err()

    def test_from_optional_keeps_falsy_values(self):
        """Only None is treated as missing."""
        assert from_optional(0, KeyError("x")) == Ok(0)

    def test_is_result(self):
        assert is_result(Ok(1))
        assert is_result(Err(ValueError()))
        assert not is_result(1)
