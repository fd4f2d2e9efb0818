"""
Logging configuration for planwatch.

This module handles the centralized logging configuration including:
- Colored console output
- Optional rotating log file
- Global debug flag
- Per-component log levels for chatty components (watcher, middleware)
- Rate limiting for high-frequency log lines
"""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional, Union

# Global debug flag
_DEBUG_MODE = False

# Component-specific log levels
_COMPONENT_LOG_LEVELS = {
    "watcher.file_watcher": logging.INFO,
    "api.middleware": logging.INFO,
}

# Rate limiting state
_RATE_LIMIT_STATE: dict[str, float] = {}

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s.%(funcName)s:%(lineno)d | %(message)s"

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LOG_COLORS = {
    "DEBUG": "\033[94m",  # Blue
    "INFO": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",  # Red
    "CRITICAL": "\033[91m\033[1m",  # Bold Red
    "RESET": "\033[0m",
}


class ColorFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for console output."""

    def format(self, record):
        levelname = record.levelname
        if levelname in _LOG_COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = (
                f"{_LOG_COLORS[levelname]}{levelname}{_LOG_COLORS['RESET']}"
            )
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name and apply component-specific levels.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        A configured logger instance
    """
    logger = logging.getLogger(name)

    for component, level in _COMPONENT_LOG_LEVELS.items():
        if component in name:
            logger.setLevel(level)
            break

    return logger


def set_debug_mode(enabled: bool) -> None:
    """
    Set the global debug mode flag.

    Args:
        enabled: True to enable debug mode, False to disable
    """
    global _DEBUG_MODE
    old_value = _DEBUG_MODE
    _DEBUG_MODE = enabled

    if old_value != _DEBUG_MODE:
        root_logger = logging.getLogger("planwatch")
        if enabled:
            root_logger.setLevel(logging.DEBUG)
            root_logger.info("Debug mode enabled")
        else:
            root_logger.info("Debug mode disabled")
            root_logger.setLevel(logging.INFO)


def is_debug_mode() -> bool:
    """Check if debug mode is currently enabled."""
    return _DEBUG_MODE


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """
    Configure console and (optionally) file logging.

    Args:
        log_dir: Directory to store log files; console only when None
        console_level: Logging level for console output
        file_level: Logging level for file output
        max_file_size_mb: Maximum size of each log file in MB before rotation
        backup_count: Number of backup log files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to avoid duplicates if reconfigured
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    planwatch_logger = logging.getLogger("planwatch")
    planwatch_logger.setLevel(logging.DEBUG if is_debug_mode() else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColorFormatter(_CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True, parents=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path / "planwatch.log",
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        root_logger.addHandler(file_handler)
        planwatch_logger.info(
            f"planwatch logging initialized (console: {logging.getLevelName(console_level)}, files: {log_dir})"
        )
    else:
        planwatch_logger.info(
            f"planwatch logging initialized (console only: {logging.getLevelName(console_level)})"
        )


def should_rate_limit_log(key: str, limit_seconds: int = 60) -> bool:
    """
    Determine if a log message should be emitted under rate limiting.

    Args:
        key: Unique key for the log message type
        limit_seconds: Minimum seconds between log messages

    Returns:
        True if the message should be logged (not rate limited)
    """
    current_time = time.time()

    if key not in _RATE_LIMIT_STATE:
        _RATE_LIMIT_STATE[key] = current_time
        return True

    if current_time - _RATE_LIMIT_STATE[key] >= limit_seconds:
        _RATE_LIMIT_STATE[key] = current_time
        return True

    return False


def reset_rate_limit_state() -> None:
    """Reset rate limiting state. Useful for testing."""
    _RATE_LIMIT_STATE.clear()
