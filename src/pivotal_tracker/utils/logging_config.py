"""
Logging configuration for the Pivotal Tracker client.

The library itself only ever calls ``logging.getLogger(__name__)``; the helpers
here are for applications that want a ready-made setup:
- Log level from the environment (LOG_LEVEL, DEBUG)
- Console and rotating file handlers
- Timing of operations
"""

from datetime import datetime
import logging
import logging.handlers
import os
from pathlib import Path
import sys
from typing import Any

# -------------------- Configuration --------------------


# Log directory
LOG_DIR = Path.home() / ".cache" / "pivotal-tracker" / "logs"

# Log format strings
CONSOLE_FORMAT = "%(name)s %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

# Date format for logs
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# -------------------- Global State --------------------


_loggers_configured = set()


# -------------------- Utility Functions --------------------


def get_log_level() -> int:
    """
    Get the current log level from environment configuration.

    Checks LOG_LEVEL environment variable first, then DEBUG flag.

    Returns:
        Logging level constant (logging.DEBUG, logging.INFO, etc.)
    """
    level_str = os.getenv("LOG_LEVEL", "").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str in level_map:
        return level_map[level_str]

    # Fall back to DEBUG env var
    if os.getenv("DEBUG", "").lower() in ("true", "1", "yes"):
        return logging.DEBUG

    return logging.INFO


def get_log_file_path() -> Path:
    """Get today's log file path, creating the log directory if needed."""
    log_dir = LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    today = datetime.now().strftime("%Y-%m-%d")
    return log_dir / f"pivotal-tracker-{today}.log"


# -------------------- Setup Functions --------------------


def setup_logging(
    name: str,
    level: int | None = None,
    console: bool = True,
    file: bool = False,
) -> logging.Logger:
    """
    Setup logging for a module with consistent formatting.

    Args:
        name: Logger name (usually __name__ or "pivotal_tracker")
        level: Log level (defaults to get_log_level())
        console: Add console handler
        file: Add rotating file handler under LOG_DIR

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging("pivotal_tracker", level=logging.DEBUG)
        >>> logger.debug("GET projects")
    """
    # Avoid configuring the same logger twice
    if name in _loggers_configured:
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    logger.setLevel(level or get_log_level())
    logger.handlers.clear()
    logger.propagate = False

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logger.level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if file:
        file_handler = logging.handlers.RotatingFileHandler(
            get_log_file_path(),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logger.level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    _loggers_configured.add(name)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with standard configuration."""
    if name not in _loggers_configured:
        return setup_logging(name)
    return logging.getLogger(name)


# -------------------- Performance Monitoring --------------------


class PerformanceMonitor:
    """
    Context manager for timing an operation.

    Example:
        >>> with PerformanceMonitor(logger, "GET projects"):
        ...     response = await http.get("projects")
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation_name: str,
        log_level: int = logging.DEBUG,
        **metadata: Any,
    ) -> None:
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = log_level
        self.metadata = metadata
        self.start_time: datetime | None = None
        self.elapsed: float | None = None

    def __enter__(self) -> "PerformanceMonitor":
        """Start timing."""
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Log timing information."""
        if self.start_time is None:
            return

        self.elapsed = (datetime.now() - self.start_time).total_seconds()

        status = "failed" if exc_type is not None else "completed"
        msg = f"{self.operation_name} {status} in {self.elapsed:.2f}s"

        if self.metadata:
            metadata_str = ", ".join(f"{k}={v}" for k, v in self.metadata.items())
            msg = f"{msg} ({metadata_str})"

        self.logger.log(self.log_level, msg)
