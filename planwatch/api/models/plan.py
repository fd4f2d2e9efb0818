"""Request and response models for the plan endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from planwatch.api.models.base import CamelModel


class StatusOverrideRequest(BaseModel):
    """Manual status change for one task."""

    status: str = Field(
        ..., description="Status to record for the task: DONE or BLOCKED"
    )


class StatusOverrideResponse(CamelModel):
    ok: bool = True
    event: dict[str, Any] = Field(..., description="The appended log event")


class TaskEventsResponse(CamelModel):
    task_id: str = Field(..., alias="taskId")
    events: list[dict[str, Any]] = Field(default_factory=list)
