"""
Error handling for planwatch.

Request-level failures are exceptions; parse problems are returned as data.
"""

from planwatch.errors.exceptions import (
    ConfigurationError,
    GitCommandError,
    InvalidStatusOverrideError,
    PlanNotConfiguredError,
    PlanwatchError,
    SessionNotFoundError,
    TaskNotFoundError,
)

__all__ = [
    "PlanwatchError",
    "PlanNotConfiguredError",
    "TaskNotFoundError",
    "InvalidStatusOverrideError",
    "SessionNotFoundError",
    "GitCommandError",
    "ConfigurationError",
]
