"""Schema validation and coercion-based repair of tool arguments."""

from typing import Any, Callable, Optional

from .coercion import coerce_value
from .models import ParameterSchema


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int)


TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "number": _is_number,
    "integer": _is_integer,
    # bool is a subclass of int, so only real bools pass
    "boolean": lambda value: isinstance(value, bool),
    "array": lambda value: isinstance(value, list),
    "object": lambda value: isinstance(value, dict),
    "null": lambda value: value is None,
}


def json_type_name(value: Any) -> str:
    """Name of the JSON type a Python value maps to."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def validate_arguments(arguments: Any, schema: ParameterSchema) -> list[str]:
    """
    Validate tool arguments against a parameter schema.

    Args:
        arguments: Arguments to validate
        schema: Declared parameter schema

    Returns:
        One "<path>: <message>" string per violation; empty when valid
    """
    if not isinstance(arguments, dict):
        return [f"/: Expected object, got {json_type_name(arguments)}"]

    errors: list[str] = []

    for name in schema.required:
        if name not in arguments:
            errors.append(f"/{name}: Required property")

    for name, expected_type in schema.declared_types().items():
        if name not in arguments:
            continue
        check = TYPE_CHECKS.get(expected_type)
        if check is None:
            # Unknown types are not enforced
            continue
        value = arguments[name]
        if not check(value):
            errors.append(f"/{name}: Expected {expected_type}, got {json_type_name(value)}")

    return errors


def repair_arguments(
    arguments: dict[str, Any], schema: ParameterSchema
) -> Optional[dict[str, Any]]:
    """
    Try to repair arguments by coercing values to their declared types.

    The coerced copy is validated again and only returned when it passes.

    Args:
        arguments: Original (invalid) arguments; never mutated
        schema: Declared parameter schema

    Returns:
        Repaired copy of the arguments, or None if repair failed
    """
    if not isinstance(arguments, dict):
        return None

    repaired = dict(arguments)
    any_coerced = False

    for name, expected_type in schema.declared_types().items():
        if name not in repaired:
            continue
        result = coerce_value(repaired[name], expected_type)
        if result.coerced:
            repaired[name] = result.value
            any_coerced = True

    if any_coerced and not validate_arguments(repaired, schema):
        return repaired
    return None
