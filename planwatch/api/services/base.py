"""
Base service interface for the planwatch API.

Services hold the long-lived state behind the endpoints (caches, the hook
ring buffer, the broadcast hub) and report on themselves through
``health_check``.
"""

import time
from abc import ABC, abstractmethod
from typing import Any

from planwatch.logging import get_logger


class BaseService(ABC):
    """Common logging helpers for API services."""

    def __init__(self):
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    def log_operation(self, operation: str, **kwargs: Any) -> None:
        """Log a service operation with contextual key/value pairs."""
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        self.logger.info(f"{operation}: {context}" if context else operation)

    def log_duration(self, operation: str, started: float) -> float:
        """Log the time elapsed since ``started`` (``time.perf_counter``)."""
        duration_ms = (time.perf_counter() - started) * 1000
        self.logger.debug(f"Performance: {operation} took {duration_ms:.2f}ms")
        return duration_ms

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Return health information for this service."""
