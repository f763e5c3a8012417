"""Parameter schema handling.

Tool arguments are validated against a fixed subset of JSON Schema:

- ``type``: string, integer, number, boolean, array, object, null
  (an integer also satisfies ``number``)
- ``properties``, ``required``, ``additionalProperties`` (boolean, default true)
- ``minLength`` / ``maxLength``: measured in UTF-8 bytes
- ``pattern``: only the ``^<prefix>*`` form, checked as a plain prefix
- ``minimum`` / ``maximum``, ``maxItems``

Validation stops at the first violation. The messages produced here are
matched by the protocol layer's error classifier, so their wording must
stay stable.
"""

import math
from decimal import Decimal
from typing import Any, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from shared.errors import ArgumentValidationError, InvalidToolSchemaError


def check_parameter_schema(name: str, schema: Any) -> None:
    """
    Check that a tool's parameter schema is well-formed JSON Schema.

    Run once per tool at registry build time.

    Raises:
        InvalidToolSchemaError: If the schema is malformed
    """
    if not isinstance(schema, dict):
        raise InvalidToolSchemaError(
            f"Tool '{name}' parameter schema must be an object"
        )
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise InvalidToolSchemaError(
            f"Tool '{name}' has an invalid parameter schema: {e.message}"
        ) from e


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a decoded JSON value."""
    # bool is checked before int: True is an int in Python
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
    if value is None:
        return "null"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_negative_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _format_bound(bound: Union[int, float]) -> str:
    """Render a numeric bound in plain decimal notation, without a trailing ".0"."""
    if isinstance(bound, int):
        return str(bound)
    if math.isnan(bound):
        return "NaN"
    if math.isinf(bound):
        return "inf" if bound > 0 else "-inf"
    # shortest round-trip digits, never exponent notation
    text = format(Decimal(repr(bound)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def validate_arguments(schema: Any, arguments: Any) -> None:
    """
    Validate tool arguments against a parameter schema.

    Args:
        schema: The tool's parameter schema
        arguments: Decoded JSON arguments, or None when absent

    Raises:
        ArgumentValidationError: On the first violation found
    """
    if not isinstance(schema, dict):
        schema = {}

    properties = schema.get("properties")
    if not isinstance(properties, dict):
        properties = None

    required_raw = schema.get("required")
    required = (
        [r for r in required_raw if isinstance(r, str)]
        if isinstance(required_raw, list) else []
    )

    additional_properties = schema.get("additionalProperties")
    if not isinstance(additional_properties, bool):
        additional_properties = True

    if required and arguments is None:
        raise ArgumentValidationError(
            f"Missing required arguments: {', '.join(required)}"
        )

    if arguments is None:
        return

    if not isinstance(arguments, dict):
        raise ArgumentValidationError("Arguments must be an object")

    if not additional_properties and properties is not None:
        for key in arguments:
            if key not in properties:
                raise ArgumentValidationError(f"Unexpected parameter: '{key}'")

    for field in required:
        if field not in arguments:
            raise ArgumentValidationError(f"Missing required parameter: '{field}'")

    if properties is not None:
        for name, value in arguments.items():
            prop_schema = properties.get(name)
            if prop_schema is not None:
                validate_value(name, value, prop_schema)


def validate_value(name: str, value: Any, schema: Any) -> None:
    """Validate a single named argument value against its property schema."""
    if not isinstance(schema, dict):
        return

    expected = schema.get("type")
    if isinstance(expected, str):
        actual = json_type_name(value)
        matches = expected == actual or (expected == "number" and actual == "integer")
        if not matches:
            raise ArgumentValidationError(
                f"Parameter '{name}' must be of type '{expected}', got '{actual}'"
            )

    if isinstance(value, str):
        _validate_string(name, value, schema)

    if _is_number(value):
        _validate_number(name, value, schema)

    if isinstance(value, list):
        max_items = _non_negative_int(schema.get("maxItems"))
        if max_items is not None and len(value) > max_items:
            raise ArgumentValidationError(
                f"Parameter '{name}' exceeds maximum array length of {max_items}"
            )


def _validate_string(name: str, value: str, schema: dict[str, Any]) -> None:
    length = len(value.encode("utf-8"))

    min_length = _non_negative_int(schema.get("minLength"))
    if min_length is not None and length < min_length:
        raise ArgumentValidationError(
            f"Parameter '{name}' must be at least {min_length} characters long"
        )

    max_length = _non_negative_int(schema.get("maxLength"))
    if max_length is not None and length > max_length:
        raise ArgumentValidationError(
            f"Parameter '{name}' exceeds maximum length of {max_length}"
        )

    pattern = schema.get("pattern")
    if isinstance(pattern, str) and pattern.startswith("^") and pattern.endswith("*"):
        prefix = pattern.lstrip("^").rstrip("*")
        if not value.startswith(prefix):
            raise ArgumentValidationError(
                f"Parameter '{name}' does not match required pattern"
            )


def _validate_number(name: str, value: Union[int, float], schema: dict[str, Any]) -> None:
    minimum = schema.get("minimum")
    if _is_number(minimum) and value < minimum:
        raise ArgumentValidationError(
            f"Parameter '{name}' must be at least {_format_bound(minimum)}"
        )

    maximum = schema.get("maximum")
    if _is_number(maximum) and value > maximum:
        raise ArgumentValidationError(
            f"Parameter '{name}' must be at most {_format_bound(maximum)}"
        )
