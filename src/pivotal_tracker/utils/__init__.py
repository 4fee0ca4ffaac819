"""
Utility functions and helpers for the Pivotal Tracker client.
"""

from .errors import (
    PaginationStalledError,
    PivotalError,
    ProtocolError,
    StatusError,
    TransportError,
    format_status_error,
)
from .logging_config import PerformanceMonitor, get_log_level, get_logger, setup_logging

__all__ = [
    # Errors
    "PivotalError",
    "TransportError",
    "ProtocolError",
    "StatusError",
    "PaginationStalledError",
    "format_status_error",
    # Logging
    "get_log_level",
    "get_logger",
    "setup_logging",
    "PerformanceMonitor",
]
