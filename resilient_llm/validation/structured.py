"""JSON-schema constrained responses."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

from ..exceptions import StructuredOutputError
from .schema import ValidationReport, validate

logger = logging.getLogger(__name__)


@dataclass
class StructuredOutput:
    """Parsed structured response and its validation report."""

    data: Any
    report: ValidationReport

    @property
    def valid(self) -> bool:
        return self.report.valid


def build_response_format(name: str, schema: Dict[str, Any], strict: bool = True) -> Dict[str, Any]:
    """Build the ``response_format`` block that asks the model to follow ``schema``."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "strict": strict,
            "schema": schema,
        },
    }


def parse_structured_output(content: str, schema: Dict[str, Any]) -> StructuredOutput:
    """
    Decode model content as JSON and validate it.

    A schema mismatch is reported, not raised; the caller decides whether to
    accept the payload (see ``ValidationReport.raise_for_errors``).

    Raises:
        StructuredOutputError: content is not valid JSON
    """
    try:
        data = json.loads(content)
    except (TypeError, ValueError) as e:
        raise StructuredOutputError(f"Failed to parse JSON: {e}") from e

    report = validate(data, schema)
    if not report.valid:
        logger.warning(f"Structured output validation errors: {list(report.errors)}")

    return StructuredOutput(data=data, report=report)
