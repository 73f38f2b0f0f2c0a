"""Lightweight structural validation of decoded JSON against a schema."""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..exceptions import SchemaValidationError

_JSON_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    type(None): "null",
}


def json_type_name(value: Any) -> str:
    """Name of a Python value's JSON type."""
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def _matches_type(value: Any, expected: str) -> bool:
    # bool is an int subclass but never a JSON number
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "array":
        return isinstance(value, list)
    if expected == "object":
        return isinstance(value, dict)
    return True


@dataclass(frozen=True)
class ValidationReport:
    """All violations found in one value."""

    errors: Tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise SchemaValidationError(list(self.errors))


def validate(value: Any, schema: Dict[str, Any]) -> ValidationReport:
    """
    Check a decoded JSON object against a declarative schema.

    Checks required fields, primitive types of declared properties, enum
    membership and, when ``additionalProperties`` is false, undeclared
    keys. Every check runs; nothing short-circuits.
    """
    if not isinstance(value, dict):
        return ValidationReport((f"Expected object, got {json_type_name(value)}",))

    errors: List[str] = []
    properties: Dict[str, Any] = schema.get("properties") or {}

    for name in schema.get("required") or []:
        if name not in value:
            errors.append(f"Missing required field: {name}")

    for name, field_schema in properties.items():
        if name not in value:
            continue
        field_value = value[name]

        expected = field_schema.get("type")
        if expected and not _matches_type(field_value, expected):
            errors.append(
                f"Field {name} should be {expected}, got {json_type_name(field_value)}"
            )

        allowed = field_schema.get("enum")
        if allowed is not None and field_value not in allowed:
            errors.append(
                f"Field {name} must be one of: {', '.join(str(v) for v in allowed)}"
            )

    if schema.get("additionalProperties") is False:
        for name in value:
            if name not in properties:
                errors.append(f"Unexpected field: {name}")

    return ValidationReport(tuple(errors))
