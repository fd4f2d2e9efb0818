"""Response models for the system endpoints."""

from typing import Optional

from pydantic import BaseModel, Field

from planwatch.api.models.base import CamelModel


class Modes(BaseModel):
    live: bool = Field(False, description="Session directories exist")
    plan: bool = Field(False, description="A queue file exists in the plan directory")


class HealthResponse(CamelModel):
    status: str = "ok"
    version: str
    modes: Modes
    connected_clients: int = Field(0, alias="connectedClients")
    last_sessions: Optional[str] = Field(None, alias="lastSessions")
    auto_commit: bool = Field(False, alias="autoCommit")


class RouteTiming(BaseModel):
    p50: float
    p95: float
    max: float
    samples: int
