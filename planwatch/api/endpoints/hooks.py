"""
Hook endpoints.

``POST /hook`` is called by the agent's hook scripts. It acknowledges at
once; compaction side effects run after the response has been sent.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends

from planwatch.api.dependencies import get_hook_service, get_hub
from planwatch.api.models import HookAck, HookEventsResponse
from planwatch.api.services import BroadcastHub, HookService
from planwatch.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/hook", response_model=HookAck)
async def receive_hook(
    background_tasks: BackgroundTasks,
    body: dict[str, Any] = Body(default_factory=dict),
    hook_service: HookService = Depends(get_hook_service),
    hub: BroadcastHub = Depends(get_hub),
) -> HookAck:
    """Store, broadcast and (for compaction events) act on a hook event."""
    hook_event = hook_service.push(body)
    hub.broadcast(hook_event.to_dict())
    background_tasks.add_task(hook_service.handle, hook_event)
    return HookAck(received_at=hook_event.received_at.isoformat())


@router.get("/hook/events", response_model=HookEventsResponse)
async def list_hook_events(
    hook_service: HookService = Depends(get_hook_service),
) -> HookEventsResponse:
    """Recent hook events (newest first) and the hook wiring status."""
    return HookEventsResponse(
        events=[e.to_dict() for e in hook_service.get_events()],
        auto_commit=hook_service.get_auto_commit(),
        hooks_installed=hook_service.get_hooks_installed(),
    )
