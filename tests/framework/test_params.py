"""Tests for argument coercion against parameter tags."""

import pytest

from rtk.framework.params import CoercionError, ParamType, coerce, describe_shape


class TestCoerce:
    @pytest.mark.parametrize(
        "tag, value, expected",
        [
            (ParamType.STRING, "a.txt", "a.txt"),
            (ParamType.STRING, 5, "5"),
            (ParamType.STRING, 2.5, "2.5"),
            (ParamType.INTEGER, 7, 7),
            (ParamType.INTEGER, "-12", -12),
            (ParamType.INTEGER, " +3 ", 3),
            (ParamType.INTEGER, 4.0, 4),
            (ParamType.NUMBER, "2.5", 2.5),
            (ParamType.NUMBER, 3, 3),
            (ParamType.NUMBER, 2.5, 2.5),
            (ParamType.BOOLEAN, "Yes", True),
            (ParamType.BOOLEAN, "off", False),
            (ParamType.BOOLEAN, 1, True),
            (ParamType.LIST, ("a", "b"), ["a", "b"]),
            (ParamType.LIST, '["a.txt", 2]', ["a.txt", 2]),
            (ParamType.MAPPING, '{"k": 1}', {"k": 1}),
            (ParamType.ANY, None, None),
        ],
    )
    def test_accepted(self, tag, value, expected):
        assert coerce(tag, value) == expected

    @pytest.mark.parametrize(
        "tag, value",
        [
            (ParamType.STRING, None),
            (ParamType.STRING, True),
            (ParamType.STRING, ["a"]),
            (ParamType.INTEGER, True),
            (ParamType.INTEGER, "1.5"),
            (ParamType.INTEGER, 1.5),
            (ParamType.INTEGER, "ten"),
            (ParamType.NUMBER, False),
            (ParamType.NUMBER, "abc"),
            (ParamType.NUMBER, float("nan")),
            (ParamType.NUMBER, float("-inf")),
            (ParamType.NUMBER, "infinity"),
            (ParamType.NUMBER, "NaN"),
            (ParamType.NUMBER, "1e999"),
            (ParamType.BOOLEAN, "maybe"),
            (ParamType.BOOLEAN, 2),
            (ParamType.LIST, '{"k": 1}'),
            (ParamType.LIST, "not json"),
            (ParamType.LIST, "[" * 200_000),
            (ParamType.MAPPING, '{"k": ' * 200_000),
            (ParamType.INTEGER, "9" * 5000),
            (ParamType.MAPPING, "[1]"),
            (ParamType.MAPPING, 5),
        ],
    )
    def test_rejected(self, tag, value):
        with pytest.raises(CoercionError) as exc_info:
            coerce(tag, value)
        assert exc_info.value.tag is tag

    def test_coercion_error_is_value_error(self):
        with pytest.raises(ValueError, match="expected integer"):
            coerce(ParamType.INTEGER, "x")


def test_describe_shape():
    assert describe_shape(()) == "()"
    assert describe_shape((ParamType.STRING, ParamType.LIST)) == "(string, list)"
