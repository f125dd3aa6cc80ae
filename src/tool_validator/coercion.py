"""Best-effort coercion of argument values to schema-declared types."""

import json
import math
from typing import Any, Callable, Optional, Union

from .json_repair import try_parse_json
from .models import CoercionResult

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})

_UNCHANGED = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(text: str) -> Optional[Union[int, float]]:
    """Parse a numeric string, returning None when it is not a finite number."""
    text = text.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _to_string(value: Any) -> Any:
    if isinstance(value, str):
        return _UNCHANGED
    return _stringify(value)


def _to_number(value: Any) -> Any:
    if isinstance(value, str):
        number = _parse_number(value)
        if number is not None:
            return number
    return _UNCHANGED


def _to_boolean(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    elif _is_number(value):
        return value != 0
    return _UNCHANGED


def _to_array(value: Any) -> Any:
    if not isinstance(value, str):
        return _UNCHANGED
    parsed = try_parse_json(value)
    if parsed.success and isinstance(parsed.parsed, list):
        return parsed.parsed
    if "," in value:
        return [part.strip() for part in value.split(",")]
    return [value]


def _to_object(value: Any) -> Any:
    if isinstance(value, str):
        parsed = try_parse_json(value)
        if parsed.success and isinstance(parsed.parsed, dict):
            return parsed.parsed
    return _UNCHANGED


# Declared JSON type -> coercer. Coercers return _UNCHANGED when they
# cannot (or need not) convert the value.
COERCERS: dict[str, Callable[[Any], Any]] = {
    "string": _to_string,
    "number": _to_number,
    "integer": _to_number,
    "boolean": _to_boolean,
    "array": _to_array,
    "object": _to_object,
}


def coerce_value(value: Any, expected_type: str) -> CoercionResult:
    """
    Coerce a value to match an expected JSON type.

    Args:
        value: Value supplied by the model
        expected_type: Type declared in the parameter schema

    Returns:
        CoercionResult with the new value and whether it changed
    """
    coercer = COERCERS.get(expected_type)
    if value is None or coercer is None:
        return CoercionResult(value=value, coerced=False)

    converted = coercer(value)
    if converted is _UNCHANGED:
        return CoercionResult(value=value, coerced=False)
    return CoercionResult(value=converted, coerced=True)
