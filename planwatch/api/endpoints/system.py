"""
System endpoints: health and request timing.
"""

from fastapi import APIRouter, Depends

from planwatch.api.dependencies import get_services, get_timings
from planwatch.api.middleware import RequestTimings
from planwatch.api.models import HealthResponse, Modes, RouteTiming
from planwatch.api.startup import AppServices

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(services: AppServices = Depends(get_services)) -> HealthResponse:
    """
    Health check endpoint.

    Returns:
        Which modes have data, connected SSE clients, the time of the last
        session change and the auto-commit flag
    """
    last_change = services.session_service.last_change
    return HealthResponse(
        version=services.config.version,
        modes=Modes(
            live=services.session_service.has_live_data(),
            plan=services.plan_service.has_queue(),
        ),
        connected_clients=services.hub.subscriber_count,
        last_sessions=last_change.isoformat() if last_change else None,
        auto_commit=services.hook_service.get_auto_commit(),
    )


@router.get("/debug/timing", response_model=dict[str, RouteTiming])
async def get_timing(timings: RequestTimings = Depends(get_timings)) -> dict[str, dict]:
    """p50/p95/max response time per route over its last 100 requests."""
    return timings.summary()
