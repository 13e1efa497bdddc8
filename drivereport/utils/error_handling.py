"""
Error Handling Utilities

Standardized exceptions and error handling helpers for the report engine.
Recoverable data-quality issues are absorbed where they occur; the
exceptions below are the ones that reach the caller.
"""

import logging
from typing import Any, Callable
import traceback

logger = logging.getLogger(__name__)


class ReportError(Exception):
    """Base class for report engine errors."""
    pass


class ConfigurationError(ReportError):
    """Raised when the configuration document is absent or unusable."""
    pass


class ValidationError(ReportError):
    """Raised when an input record cannot be normalized."""
    pass


class ReportBuildError(ReportError):
    """Raised when a single driver's report cannot be built."""

    def __init__(self, driver_id: Any, message: str):
        self.driver_id = driver_id
        super().__init__(f"driver={driver_id}: {message}")


def safe_execute(
    func: Callable,
    *args,
    default: Any = None,
    error_context: str = "",
    **kwargs
) -> Any:
    """
    Safely execute a function with error handling.

    Args:
        func: Function to execute
        *args: Positional arguments
        default: Default value to return on error
        error_context: Context for error messages
        **kwargs: Keyword arguments

    Returns:
        Function result or default value
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        context = f"{error_context}: " if error_context else ""
        logger.error(f"{context}{type(e).__name__}: {e}")
        logger.debug(f"Error details: {traceback.format_exc()}")
        return default
