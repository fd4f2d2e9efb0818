"""Pydantic models for API requests and responses."""

from planwatch.api.models.base import CamelModel, ErrorEnvelope, ErrorResponse
from planwatch.api.models.hooks import HookAck, HookEventsResponse
from planwatch.api.models.plan import (
    StatusOverrideRequest,
    StatusOverrideResponse,
    TaskEventsResponse,
)
from planwatch.api.models.system import HealthResponse, Modes, RouteTiming

__all__ = [
    "CamelModel",
    "ErrorEnvelope",
    "ErrorResponse",
    "HealthResponse",
    "HookAck",
    "HookEventsResponse",
    "Modes",
    "RouteTiming",
    "StatusOverrideRequest",
    "StatusOverrideResponse",
    "TaskEventsResponse",
]
