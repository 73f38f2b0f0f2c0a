"""Tests for schema validation and structured output."""

import json

import pytest

from resilient_llm.exceptions import SchemaValidationError, StructuredOutputError
from resilient_llm.validation import (
    ValidationReport,
    build_response_format,
    json_type_name,
    parse_structured_output,
    validate,
)


class TestValidate:
    """Tests for structural validation."""

    def test_valid_object(self, person_schema):
        report = validate({"name": "Ada", "age": 36, "role": "admin"}, person_schema)

        assert report.valid
        assert report.errors == ()

    def test_missing_required_field(self):
        """Exactly one error naming the missing field."""
        schema = {"required": ["a", "b"]}

        report = validate({"a": 1}, schema)

        assert report.errors == ("Missing required field: b",)

    def test_type_mismatch(self, person_schema):
        report = validate({"name": "Ada", "age": "thirty"}, person_schema)

        assert report.errors == ("Field age should be number, got string",)

    def test_bool_is_not_a_number(self, person_schema):
        report = validate({"name": "Ada", "age": True}, person_schema)

        assert report.errors == ("Field age should be number, got boolean",)

    def test_integer_type(self):
        schema = {"properties": {"count": {"type": "integer"}}}

        assert validate({"count": 3}, schema).valid
        assert not validate({"count": 3.5}, schema).valid

    def test_enum_violation(self, person_schema):
        report = validate({"name": "Ada", "age": 36, "role": "root"}, person_schema)

        assert report.errors == ("Field role must be one of: admin, user",)

    def test_unexpected_field(self, person_schema):
        report = validate({"name": "Ada", "age": 36, "email": "ada@example.com"}, person_schema)

        assert report.errors == ("Unexpected field: email",)

    def test_additional_properties_allowed_by_default(self):
        schema = {"properties": {"a": {"type": "string"}}}
        assert validate({"a": "x", "b": 1}, schema).valid

    def test_errors_accumulate(self, person_schema):
        """Every check runs; errors come back in check order."""
        report = validate({"age": "old", "role": "root", "extra": 1}, person_schema)

        assert report.errors == (
            "Missing required field: name",
            "Field age should be number, got string",
            "Field role must be one of: admin, user",
            "Unexpected field: extra",
        )

    def test_absent_optional_field_not_checked(self, person_schema):
        assert validate({"name": "Ada", "age": 1}, person_schema).valid

    @pytest.mark.parametrize(
        "value,type_name",
        [([1], "array"), ("x", "string"), (3, "number"), (None, "null")],
    )
    def test_non_object_rejected(self, value, type_name, person_schema):
        report = validate(value, person_schema)

        assert report.errors == (f"Expected object, got {type_name}",)

    def test_null_field_value(self):
        schema = {"properties": {"a": {"type": "string"}}}
        assert validate({"a": None}, schema).errors == ("Field a should be string, got null",)


class TestValidationReport:
    """Tests for the validation report."""

    def test_raise_for_errors(self):
        report = ValidationReport(("Missing required field: b",))

        with pytest.raises(SchemaValidationError) as exc_info:
            report.raise_for_errors()

        assert exc_info.value.errors == ["Missing required field: b"]

    def test_raise_for_errors_noop_when_valid(self):
        ValidationReport().raise_for_errors()

    def test_json_type_names(self):
        assert json_type_name({}) == "object"
        assert json_type_name(1.5) == "number"
        assert json_type_name(False) == "boolean"


class TestStructuredOutput:
    """Tests for JSON-schema constrained responses."""

    def test_response_format(self, person_schema):
        response_format = build_response_format("person", person_schema)

        assert response_format == {
            "type": "json_schema",
            "json_schema": {"name": "person", "strict": True, "schema": person_schema},
        }

    def test_parse_valid(self, person_schema):
        output = parse_structured_output(json.dumps({"name": "Ada", "age": 36}), person_schema)

        assert output.valid
        assert output.data == {"name": "Ada", "age": 36}

    def test_violations_reported_not_raised(self, person_schema):
        output = parse_structured_output('{"name": "Ada"}', person_schema)

        assert not output.valid
        assert output.report.errors == ("Missing required field: age",)

    def test_invalid_json_raises(self, person_schema):
        with pytest.raises(StructuredOutputError, match="Failed to parse JSON"):
            parse_structured_output("not json at all", person_schema)
