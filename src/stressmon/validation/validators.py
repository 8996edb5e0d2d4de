"""
Field validators.

Each validator coerces a raw value (possibly a string read from the
environment) to its target type, checks the declared range and raises
ValidationError on failure.
"""

import math
import re
from typing import Any, Optional

from .exceptions import ValidationError

# Token set accepted as a true boolean, compared case-insensitively.
TRUE_TOKENS = ("true", "1", "on", "yes")


def validate_integer(
    value: Any,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within [min_value, max_value].

    Strings are parsed with int(); floats are accepted only when integral.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive), None for no limit
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value!r}",
            field_name=field_name,
            value=value
        )
    try:
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("not integral")
            int_value = int(value)
        else:
            int_value = int(str(value).strip())
    except (ValueError, TypeError, OverflowError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value!r}",
            field_name=field_name,
            value=value
        )
    _check_range(int_value, min_value, max_value, field_name, value)
    return int_value


def validate_float(
    value: Any,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a finite number within [min_value, max_value].

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive), None for no limit
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value!r}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value!r}",
            field_name=field_name,
            value=value
        )
    if math.isnan(float_value) or math.isinf(float_value):
        raise ValidationError(
            f"{field_name} must be a finite number, got {value!r}",
            field_name=field_name,
            value=value
        )
    _check_range(float_value, min_value, max_value, field_name, value)
    return float_value


def _check_range(number, min_value, max_value, field_name: str, raw: Any) -> None:
    if min_value is not None and number < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {number}",
            field_name=field_name,
            value=raw
        )
    if max_value is not None and number > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {number}",
            field_name=field_name,
            value=raw
        )


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """
    Coerce a value to a boolean.

    Real booleans pass through. Anything else is true only when its string
    form is one of TRUE_TOKENS, case-insensitively.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        raise ValidationError(
            f"{field_name} must be a boolean, got None",
            field_name=field_name,
            value=value
        )
    return str(value).strip().lower() in TRUE_TOKENS


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a non-empty string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_name_pattern(
    value: Any,
    pattern: str = r"[a-z0-9_]",
    field_name: str = "name"
) -> str:
    """
    Validate that a string contains a match for pattern (case-insensitive).

    Args:
        value: Value to validate
        pattern: Regular expression searched for in the value
        field_name: Name of the field being validated

    Returns:
        Validated string

    Raises:
        ValidationError: If the value is not a string or has no match
    """
    name = validate_non_empty_string(value, field_name=field_name)
    if not re.search(pattern, name, re.IGNORECASE):
        raise ValidationError(
            f"{field_name} must match '{pattern}', got {value!r}",
            field_name=field_name,
            value=value
        )
    return name
