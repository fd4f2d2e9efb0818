"""
Live endpoints.

The SSE change stream and the live-session views.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from planwatch.api.dependencies import get_hub, get_session_service
from planwatch.api.services import BroadcastHub, SessionService
from planwatch.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

KEEPALIVE_FRAME = ": ping\n\n"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_frame(message: Any) -> str:
    """Encode one message as an SSE data frame."""
    return f"data: {json.dumps(message, default=str)}\n\n"


async def sse_event_stream(hub: BroadcastHub) -> AsyncIterator[str]:
    """
    Frames for one SSE subscriber.

    Starts with a ``connected`` frame, then yields every broadcast and
    keepalive in order. Closing the generator (client disconnect) runs the
    subscriber's cleanup; the stream ends when the hub drops the subscriber.
    """
    frames: asyncio.Queue[Optional[str]] = asyncio.Queue()
    terminators = []

    dispose = hub.subscribe(
        deliver=lambda message: frames.put_nowait(sse_frame(message)),
        keepalive=lambda: frames.put_nowait(KEEPALIVE_FRAME),
        on_terminate=terminators.append,
        on_close=lambda: frames.put_nowait(None),
    )
    try:
        yield sse_frame(
            {"type": "connected", "timestamp": datetime.now(timezone.utc).isoformat()}
        )
        while True:
            frame = await frames.get()
            if frame is None:
                return
            yield frame
    finally:
        for cleanup in terminators:
            cleanup()
        dispose()


@router.get("/events")
async def stream_events(hub: BroadcastHub = Depends(get_hub)) -> StreamingResponse:
    """Server-Sent Events stream of plan, session and hook notifications."""
    return StreamingResponse(
        sse_event_stream(hub), media_type="text/event-stream", headers=SSE_HEADERS
    )


@router.get("/sessions")
async def list_sessions(
    days: Optional[str] = Query(
        None, description="Only sessions updated within N days; 'all' for no cutoff"
    ),
    session_service: SessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """Live sessions, most recently updated first."""
    return await session_service.get_sessions(session_service.cutoff_for(days))


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """One live session."""
    return {"session": await session_service.get_by_id(session_id)}


@router.get("/sessions/{session_id}/context")
async def get_session_context(
    session_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> dict[str, Any]:
    """Recent prompts and tool usage from the session transcript."""
    summary = await session_service.get_context(session_id)
    return summary.to_dict()


@router.post("/sessions/{session_id}/resume-cmd")
async def get_resume_command(
    session_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> dict[str, str]:
    """Shell command that resumes the session."""
    await session_service.get_by_id(session_id)
    return {"command": f"claude resume {session_id}", "sessionId": session_id}


@router.delete("/sessions/{session_id}/tasks/{task_id}")
async def dismiss_task(
    session_id: str,
    task_id: str,
    session_service: SessionService = Depends(get_session_service),
    hub: BroadcastHub = Depends(get_hub),
) -> dict[str, bool]:
    """Hide a task from session output and tell subscribers to refetch."""
    await session_service.dismiss(session_id, task_id)
    hub.broadcast(
        {"type": "sessions", "timestamp": datetime.now(timezone.utc).isoformat()}
    )
    return {"ok": True}
