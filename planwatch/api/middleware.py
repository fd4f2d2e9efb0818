"""
API middleware module.

Request logging plus a rolling per-route record of response times that the
``/debug/timing`` endpoint reports on.
"""

import logging
import time
from collections import deque
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from planwatch.logging import get_logger, should_rate_limit_log

logger = get_logger(__name__)

TIMING_SAMPLES = 100

# Long-lived or self-referential routes are not timed
UNTIMED_PATHS = ("/events", "/debug/timing")
HIGH_FREQUENCY_PATHS = ("/health", "/snapshot", "/sessions", "/hook")


class RequestTimings:
    """Last ``samples`` response times (ms) per route template."""

    def __init__(self, samples: int = TIMING_SAMPLES):
        self._samples = samples
        self._timings: dict[str, deque[float]] = {}

    def record(self, route: str, duration_ms: float) -> None:
        self._timings.setdefault(route, deque(maxlen=self._samples)).append(duration_ms)

    def summary(self) -> dict[str, dict[str, float]]:
        """p50, p95 and max per route, rounded to 0.1 ms."""
        result = {}
        for route, samples in self._timings.items():
            if not samples:
                continue
            ordered = sorted(samples)

            def percentile(pct: int) -> float:
                return ordered[min(len(ordered) * pct // 100, len(ordered) - 1)]

            result[route] = {
                "p50": round(percentile(50), 1),
                "p95": round(percentile(95), 1),
                "max": round(ordered[-1], 1),
                "samples": len(ordered),
            }
        return result

    def clear(self) -> None:
        self._timings.clear()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging API requests and recording their duration.

    High-frequency routes log at DEBUG and are rate limited.
    """

    def __init__(self, app: ASGIApp, timings: RequestTimings):
        super().__init__(app)
        self.timings = timings

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in UNTIMED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        is_high_frequency = path.startswith(HIGH_FREQUENCY_PATHS)
        log_level = logging.DEBUG if is_high_frequency else logging.INFO
        should_log = True
        if is_high_frequency:
            should_log = should_rate_limit_log(f"request_{path}", 30)

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: method={request.method} path={path} "
                f"error={exc} duration={process_time:.2f}ms",
                exc_info=True,
            )
            raise

        process_time = (time.perf_counter() - start_time) * 1000
        route = request.scope.get("route")
        self.timings.record(getattr(route, "path", path), process_time)

        if should_log:
            logger.log(
                log_level,
                f"Request completed: method={request.method} path={path} "
                f"status_code={response.status_code} duration={process_time:.2f}ms",
            )
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response


def add_middleware(app: FastAPI, timings: RequestTimings) -> None:
    """Add the custom middleware to the application."""
    app.add_middleware(RequestLoggingMiddleware, timings=timings)
    logger.debug("Custom middleware added to the API application")
