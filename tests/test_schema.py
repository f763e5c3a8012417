"""Tests for argument validation against the parameter schema subset."""

import pytest

from shared.errors import ArgumentValidationError, InvalidToolSchemaError
from shared.schema import (
    check_parameter_schema,
    json_type_name,
    validate_arguments,
    validate_value,
)


def object_schema(properties=None, required=None, additional=False):
    return {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
        "additionalProperties": additional,
    }


def validation_message(schema, arguments) -> str:
    with pytest.raises(ArgumentValidationError) as exc_info:
        validate_arguments(schema, arguments)
    return str(exc_info.value)


class TestTypeChecks:
    """Tests for the ``type`` keyword."""

    @pytest.mark.parametrize("expected,value", [
        ("string", "test"),
        ("integer", 42),
        ("number", 4.2),
        ("number", 42),
        ("boolean", True),
        ("array", [1, 2, 3]),
        ("object", {"key": "value"}),
        ("null", None),
    ])
    def test_matching_types_pass(self, expected, value):
        """Values of the declared type validate."""
        schema = object_schema({"field": {"type": expected}})
        validate_arguments(schema, {"field": value})

    def test_integer_satisfies_number(self):
        """An integer is accepted where a number is declared."""
        validate_value("value", 42, {"type": "number"})
        validate_arguments(object_schema({"value": {"type": "number"}}), {"value": 42})

    def test_string_rejects_integer(self):
        """Type mismatches name the expected and actual types."""
        message = validation_message(
            object_schema({"name": {"type": "string"}}),
            {"name": 123}
        )
        assert message == "Parameter 'name' must be of type 'string', got 'integer'"

    def test_integer_rejects_float(self):
        """A float is not an integer."""
        message = validation_message(
            object_schema({"count": {"type": "integer"}}),
            {"count": 1.5}
        )
        assert "got 'number'" in message

    def test_boolean_is_not_a_number(self):
        """Booleans never satisfy integer or number."""
        message = validation_message(
            object_schema({"value": {"type": "number"}}),
            {"value": True}
        )
        assert message == "Parameter 'value' must be of type 'number', got 'boolean'"

    def test_boolean_rejects_string(self):
        message = validation_message(
            object_schema({"enabled": {"type": "boolean"}}),
            {"enabled": "yes"}
        )
        assert "must be of type 'boolean'" in message

    def test_json_type_names(self):
        assert json_type_name(True) == "boolean"
        assert json_type_name(1) == "integer"
        assert json_type_name(1.0) == "number"
        assert json_type_name(None) == "null"
        assert json_type_name([]) == "array"
        assert json_type_name({}) == "object"


class TestArgumentPresence:
    """Tests for absent arguments, ``required`` and ``additionalProperties``."""

    def test_absent_arguments_with_required_fields(self):
        """Absent arguments list every required field."""
        message = validation_message(
            object_schema({"a": {}, "b": {}}, required=["a", "b"]),
            None
        )
        assert message == "Missing required arguments: a, b"

    def test_absent_arguments_without_required_fields(self):
        """Absent arguments are fine when nothing is required."""
        validate_arguments(object_schema({"a": {"type": "string"}}), None)

    @pytest.mark.parametrize("arguments", [[1, 2], "text", 5, True])
    def test_arguments_must_be_object(self, arguments):
        assert validation_message(object_schema(), arguments) == "Arguments must be an object"

    def test_unexpected_parameter(self):
        """Unknown keys are rejected when additional properties are disallowed."""
        message = validation_message(
            object_schema({"name": {"type": "string"}}),
            {"name": "ok", "extra": 1}
        )
        assert message == "Unexpected parameter: 'extra'"

    def test_additional_properties_default_true(self):
        """Unknown keys pass when additionalProperties is not declared."""
        schema = {"type": "object", "properties": {"name": {"type": "string"}}}
        validate_arguments(schema, {"name": "ok", "extra": 1})

    def test_unexpected_checked_before_required(self):
        """An unknown key is reported even if a required key is also missing."""
        message = validation_message(
            object_schema({"name": {"type": "string"}}, required=["name"]),
            {"bogus": 1}
        )
        assert message == "Unexpected parameter: 'bogus'"

    def test_missing_required_parameter(self):
        message = validation_message(
            object_schema({"name": {"type": "string"}}, required=["name"]),
            {}
        )
        assert message == "Missing required parameter: 'name'"

    def test_first_missing_required_in_schema_order(self):
        """The first missing name in the schema's order is reported."""
        message = validation_message(
            object_schema({"a": {}, "b": {}, "c": {}}, required=["a", "b", "c"]),
            {"a": 1}
        )
        assert message == "Missing required parameter: 'b'"

    def test_all_required_present(self):
        validate_arguments(
            object_schema({"a": {}, "b": {}}, required=["a", "b"]),
            {"a": 1, "b": 2}
        )

    def test_unknown_properties_are_not_type_checked(self):
        """Keys without a property schema skip value checks."""
        schema = {"type": "object", "properties": {"known": {"type": "string"}}}
        validate_arguments(schema, {"other": 123})

    def test_non_object_schema_accepts_anything(self):
        validate_arguments(None, {"anything": True})


class TestStringConstraints:
    """Tests for minLength, maxLength and pattern."""

    def test_min_length(self):
        message = validation_message(
            object_schema({"n": {"type": "string", "minLength": 5}}),
            {"n": "ab"}
        )
        assert "must be at least 5 characters long" in message

    def test_max_length(self):
        message = validation_message(
            object_schema({"n": {"type": "string", "maxLength": 3}}),
            {"n": "abcd"}
        )
        assert message == "Parameter 'n' exceeds maximum length of 3"

    def test_length_bounds_inclusive(self):
        schema = object_schema({"n": {"type": "string", "minLength": 2, "maxLength": 4}})
        validate_arguments(schema, {"n": "ab"})
        validate_arguments(schema, {"n": "abcd"})

    def test_length_counts_utf8_bytes(self):
        """Lengths are measured in encoded bytes, not characters."""
        schema = object_schema({"n": {"type": "string", "maxLength": 3}})
        # two characters, four bytes
        message = validation_message(schema, {"n": "éé"})
        assert "exceeds maximum length" in message

    def test_prefix_pattern(self):
        schema = object_schema({"id": {"type": "string", "pattern": "^usr_*"}})
        validate_arguments(schema, {"id": "usr_42"})
        message = validation_message(schema, {"id": "grp_42"})
        assert message == "Parameter 'id' does not match required pattern"

    def test_other_patterns_are_ignored(self):
        """Only ``^prefix*`` patterns are enforced."""
        schema = object_schema({"id": {"type": "string", "pattern": "[0-9]+$"}})
        validate_arguments(schema, {"id": "no digits"})


class TestNumericConstraints:
    """Tests for minimum, maximum and maxItems."""

    def test_below_minimum(self):
        message = validation_message(
            object_schema({"n": {"type": "number", "minimum": 10}}),
            {"n": 5}
        )
        assert message == "Parameter 'n' must be at least 10"

    def test_above_maximum(self):
        message = validation_message(
            object_schema({"n": {"type": "number", "maximum": 2.5}}),
            {"n": 3}
        )
        assert message == "Parameter 'n' must be at most 2.5"

    def test_bounds_inclusive(self):
        schema = object_schema({"n": {"type": "number", "minimum": 1, "maximum": 10}})
        validate_arguments(schema, {"n": 1})
        validate_arguments(schema, {"n": 10.0})

    def test_huge_integer_without_bounds(self):
        validate_value("n", 10**400, {"type": "integer"})
        validate_value("n", 10**400, {})

    def test_huge_integer_above_maximum(self):
        message = validation_message(
            object_schema({"n": {"type": "integer", "maximum": 5}}),
            {"n": 10**400}
        )
        assert message == "Parameter 'n' must be at most 5"

    def test_integer_compared_exactly(self):
        schema = object_schema({"n": {"type": "integer", "maximum": 2**53}})
        message = validation_message(schema, {"n": 2**53 + 1})
        assert message == f"Parameter 'n' must be at most {2**53}"

    @pytest.mark.parametrize("bound,rendered", [
        (0.0000001, "0.0000001"),
        (1e21, "1000000000000000000000"),
        (-2.0, "-2"),
        (0.1, "0.1"),
    ])
    def test_bound_rendered_in_plain_notation(self, bound, rendered):
        message = validation_message(
            object_schema({"n": {"type": "number", "maximum": bound}}),
            {"n": 10**400}
        )
        assert message == f"Parameter 'n' must be at most {rendered}"

    def test_max_items(self):
        schema = object_schema({"tags": {"type": "array", "maxItems": 2}})
        validate_arguments(schema, {"tags": ["a", "b"]})
        message = validation_message(schema, {"tags": ["a", "b", "c"]})
        assert message == "Parameter 'tags' exceeds maximum array length of 2"

    def test_type_checked_before_range(self):
        schema = object_schema({"n": {"type": "integer", "minimum": 10}})
        message = validation_message(schema, {"n": "5"})
        assert "must be of type 'integer'" in message


class TestSchemaCheck:
    """Tests for registration-time schema checks."""

    def test_well_formed_schema(self):
        check_parameter_schema("tool", object_schema({"a": {"type": "string"}}))

    def test_schema_must_be_object(self):
        with pytest.raises(InvalidToolSchemaError):
            check_parameter_schema("tool", ["not", "a", "schema"])

    def test_malformed_schema(self):
        with pytest.raises(InvalidToolSchemaError, match="tool"):
            check_parameter_schema("tool", {"type": "object", "required": "name"})
