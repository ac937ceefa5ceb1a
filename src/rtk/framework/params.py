"""Parameter shapes and argument coercion for actions.

Manifesto:
    Callers (the scheduler, the CLI, an external command channel) hand the
    dispatcher loosely typed positional arguments: strings typed on a
    command line, values decoded from JSON, values restored from the job
    store. Each action declares a fixed positional shape of semantic type
    tags, and every argument is coerced against its tag before the handler
    runs, so handlers only ever see well-typed values.

Tags:
    rtk-core, framework, params, validation, coercion

Doc-Types:
    api-reference
"""

import json
import math
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


class ParamType(str, Enum):
    """Semantic type tag of one positional parameter."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    MAPPING = "mapping"
    ANY = "any"


class CoercionError(ValueError):
    """A value cannot be coerced to the requested tag."""

    def __init__(self, tag: ParamType, value: Any):
        self.tag = tag
        self.value = value
        super().__init__(f"expected {tag.value}, got {type(value).__name__} {value!r}")


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise CoercionError(ParamType.STRING, value)


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise CoercionError(ParamType.INTEGER, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in "+-" else text
        if digits.isdigit() and digits.isascii():
            try:
                return int(text)
            except ValueError:
                pass
    raise CoercionError(ParamType.INTEGER, value)


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise CoercionError(ParamType.NUMBER, value)
    if isinstance(value, int):
        return value
    number = value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise CoercionError(ParamType.NUMBER, value) from None
    if isinstance(number, float) and math.isfinite(number):
        return number
    raise CoercionError(ParamType.NUMBER, value)


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise CoercionError(ParamType.BOOLEAN, value)


def _decode_json(tag: ParamType, value: str, expected: type) -> Any:
    try:
        decoded = json.loads(value)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise CoercionError(tag, value) from exc
    if not isinstance(decoded, expected):
        raise CoercionError(tag, value)
    return decoded


def _to_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return _decode_json(ParamType.LIST, value, list)
    raise CoercionError(ParamType.LIST, value)


def _to_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        return _decode_json(ParamType.MAPPING, value, dict)
    raise CoercionError(ParamType.MAPPING, value)


_COERCERS: dict[ParamType, Callable[[Any], Any]] = {
    ParamType.STRING: _to_string,
    ParamType.INTEGER: _to_integer,
    ParamType.NUMBER: _to_number,
    ParamType.BOOLEAN: _to_boolean,
    ParamType.LIST: _to_list,
    ParamType.MAPPING: _to_mapping,
    ParamType.ANY: lambda value: value,
}


def coerce(tag: ParamType, value: Any) -> Any:
    """Coerce one loosely typed value to ``tag``.

    Raises:
        CoercionError: if the value does not fit the tag
    """
    return _COERCERS[tag](value)


def describe_shape(shape: Sequence[ParamType]) -> str:
    """Human readable shape, e.g. ``(string, string)``."""
    return "(" + ", ".join(tag.value for tag in shape) + ")"
