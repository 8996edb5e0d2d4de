"""
Exception types and error handling helpers.

This module provides the error types shared by the configuration layer and
the consistent log-then-reraise helper used at component boundaries.
"""

import logging
import sys
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation of a single field fails.

    Field validators raise this; the configuration layer collects them into
    a ValidationErrors aggregate instead of stopping at the first one.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ValidationErrors(Exception):
    """
    Aggregate of every field-level ValidationError found while resolving a
    settings object.

    Iterating over the aggregate yields the individual errors.
    """

    def __init__(self, errors: Iterable[ValidationError], context: str = "settings"):
        self.errors: List[ValidationError] = list(errors)
        self.context = context
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"{len(self.errors)} validation error(s) in {context}: {details}"
        )

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    @property
    def field_names(self) -> List[str]:
        return [e.field_name for e in self.errors if e.field_name]


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg, exc_info=True)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_cli_error(error: Exception, context: str, exit_code: int = 1,
                     logger: Optional[logging.Logger] = None) -> None:
    """Log a CLI error and exit with exit_code."""
    handle_error(error, f"CLI {context}", severity=ErrorSeverity.ERROR,
                 reraise=False, logger=logger)
    sys.exit(exit_code)
