"""Response models for the hook endpoints."""

from typing import Any

from pydantic import Field

from planwatch.api.models.base import CamelModel


class HookAck(CamelModel):
    """Acknowledgement returned to the hook sender."""

    ok: bool = True
    received_at: str = Field(..., alias="receivedAt")


class HookEventsResponse(CamelModel):
    events: list[dict[str, Any]] = Field(default_factory=list)
    auto_commit: bool = Field(False, alias="autoCommit")
    hooks_installed: bool = Field(False, alias="hooksInstalled")
