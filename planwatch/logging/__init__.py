"""
Logging system for planwatch.

Centralized console/file logging with a debug flag and per-component levels.
"""

from planwatch.logging.config import (
    configure_logging,
    get_logger,
    is_debug_mode,
    reset_rate_limit_state,
    set_debug_mode,
    should_rate_limit_log,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "set_debug_mode",
    "is_debug_mode",
    "should_rate_limit_log",
    "reset_rate_limit_state",
]
