"""Schema validation for decoded model output."""

from .schema import ValidationReport, json_type_name, validate
from .structured import StructuredOutput, build_response_format, parse_structured_output

__all__ = [
    "validate",
    "ValidationReport",
    "json_type_name",
    "StructuredOutput",
    "build_response_format",
    "parse_structured_output",
]
