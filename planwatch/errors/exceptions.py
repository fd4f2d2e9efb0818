"""
Exception hierarchy for planwatch.

Parse problems in the queue or log are never raised: they are collected as
plain error strings and returned next to the data, so a broken plan can still
be displayed. Exceptions are reserved for requests that cannot be served
(unknown task, missing session, no plan configured) and for failures of
external processes that callers turn into step results.
"""

from typing import Any, Optional


class PlanwatchError(Exception):
    """
    Base exception class for all planwatch errors.

    Attributes:
        message: Human-readable error message
        error_code: Optional error code for reference and documentation
        details: Optional dictionary with additional error details
    """

    default_code = "PLANWATCH-Error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for an API error envelope."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# --- Request errors ---


class PlanNotConfiguredError(PlanwatchError):
    """Raised when a plan operation is requested but no plan directory is set."""

    default_code = "PLAN-NotConfigured"


class TaskNotFoundError(PlanwatchError):
    """Raised when a task id is not present in the current queue."""

    default_code = "PLAN-TaskNotFound"


class InvalidStatusOverrideError(PlanwatchError):
    """Raised when a status override asks for anything but DONE or BLOCKED."""

    default_code = "PLAN-InvalidStatusOverride"


class SessionNotFoundError(PlanwatchError):
    """Raised when a live session id does not exist."""

    default_code = "SESSION-NotFound"


# --- External process errors ---


class GitCommandError(PlanwatchError):
    """
    Raised when a git invocation fails, times out, or git is not installed.

    Hook side effects catch this at the step boundary and record it as a
    failed step; it never reaches the hook ingestion caller.
    """

    default_code = "GIT-CommandFailed"


# --- Configuration errors ---


class ConfigurationError(PlanwatchError):
    """Raised when settings are inconsistent (e.g. plan dir is not a directory)."""

    default_code = "CONFIG-Invalid"
