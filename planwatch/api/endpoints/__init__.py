"""
API router module.

Collects the endpoint routers into one router mounted at the root.
"""

from fastapi import APIRouter

from planwatch.api.endpoints.hooks import router as hooks_router
from planwatch.api.endpoints.live import router as live_router
from planwatch.api.endpoints.plan import router as plan_router
from planwatch.api.endpoints.system import router as system_router
from planwatch.api.models import ErrorEnvelope

api_router = APIRouter()

api_router.include_router(system_router, tags=["System"])
api_router.include_router(
    plan_router,
    tags=["Plan"],
    responses={
        404: {"model": ErrorEnvelope, "description": "Unknown task"},
        409: {"model": ErrorEnvelope, "description": "No plan configured"},
        422: {"model": ErrorEnvelope, "description": "Invalid status override"},
    },
)
api_router.include_router(
    live_router,
    tags=["Live"],
    responses={404: {"model": ErrorEnvelope, "description": "Unknown session"}},
)
api_router.include_router(hooks_router, tags=["Hooks"])
