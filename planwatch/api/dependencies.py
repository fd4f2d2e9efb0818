"""
API dependencies module.

The services live on ``app.state`` for the lifetime of the application; these
functions hand them to the endpoints through FastAPI's dependency injection.
"""

from fastapi import Request

from planwatch.api.middleware import RequestTimings
from planwatch.api.services import (
    BroadcastHub,
    HookService,
    PlanService,
    SessionService,
)
from planwatch.api.startup import AppServices


def get_services(request: Request) -> AppServices:
    """
    Dependency for the application's services.

    Raises:
        RuntimeError: If called before the lifespan has started
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("planwatch services are not initialized")
    return services


def get_plan_service(request: Request) -> PlanService:
    return get_services(request).plan_service


def get_session_service(request: Request) -> SessionService:
    return get_services(request).session_service


def get_hook_service(request: Request) -> HookService:
    return get_services(request).hook_service


def get_hub(request: Request) -> BroadcastHub:
    return get_services(request).hub


def get_timings(request: Request) -> RequestTimings:
    return request.app.state.timings
