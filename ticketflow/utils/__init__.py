"""Utility functions for ticketflow.

This package provides utility modules:
- logging: Logging configuration and logger creation
- context: Cancellation contexts for blocking git calls
"""

from .logging import setup_logging, get_logger, default_log_file, ColoredFormatter
from .context import Context, ContextError, Cancelled, DeadlineExceeded

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "default_log_file",
    "ColoredFormatter",
    # Context
    "Context",
    "ContextError",
    "Cancelled",
    "DeadlineExceeded",
]
