"""
Validation and error handling for the stressmon package.

This module provides field validators and the error types used to report
configuration problems consistently across the application.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    ValidationErrors,
    handle_cli_error,
    handle_error,
)

from .validators import (
    TRUE_TOKENS,
    validate_boolean,
    validate_float,
    validate_integer,
    validate_name_pattern,
    validate_non_empty_string,
)

__all__ = [
    "ErrorSeverity",
    "ValidationError",
    "ValidationErrors",
    "handle_cli_error",
    "handle_error",
    "TRUE_TOKENS",
    "validate_boolean",
    "validate_float",
    "validate_integer",
    "validate_name_pattern",
    "validate_non_empty_string",
]
