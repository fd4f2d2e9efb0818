"""
Plan endpoints.

Read the derived plan snapshot, a task's event timeline, and record manual
status overrides.
"""

from typing import Any

from fastapi import APIRouter, Depends

from planwatch.api.dependencies import get_plan_service
from planwatch.api.models import (
    StatusOverrideRequest,
    StatusOverrideResponse,
    TaskEventsResponse,
)
from planwatch.api.services import PlanService
from planwatch.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/snapshot")
async def get_snapshot(
    plan_service: PlanService = Depends(get_plan_service),
) -> dict[str, Any]:
    """
    Current plan snapshot.

    ``state`` is ``no_plan`` when no plan directory or queue file exists,
    ``parse_errors`` when the queue has problems (the snapshot is still
    derived from whatever parsed), and ``loaded`` otherwise.
    """
    view = await plan_service.read()
    return view.to_dict()


@router.get("/tasks/{task_id}/events", response_model=TaskEventsResponse)
async def get_task_events(
    task_id: str,
    plan_service: PlanService = Depends(get_plan_service),
) -> TaskEventsResponse:
    """Every logged event of one task, oldest first."""
    events = await plan_service.task_events(task_id)
    return TaskEventsResponse(task_id=task_id, events=[e.to_dict() for e in events])


@router.post("/tasks/{task_id}/status", response_model=StatusOverrideResponse)
async def override_task_status(
    task_id: str,
    body: StatusOverrideRequest,
    plan_service: PlanService = Depends(get_plan_service),
) -> StatusOverrideResponse:
    """
    Record a manual DONE or BLOCKED for a task.

    The override is appended to the execution log as an event of agent
    ``planwatch``; the snapshot picks it up on the next read.
    """
    event = await plan_service.override_status(task_id, body.status)
    return StatusOverrideResponse(event=event.to_dict())
