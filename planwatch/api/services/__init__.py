"""Services behind the planwatch API."""

from planwatch.api.services.dispatcher import ChangeDispatcher
from planwatch.api.services.hook_service import HookService, StepResult
from planwatch.api.services.memo_cache import MemoCache
from planwatch.api.services.plan_service import PlanService, PlanView, derive_view
from planwatch.api.services.session_service import SessionService
from planwatch.api.services.sse_hub import BroadcastHub

__all__ = [
    "BroadcastHub",
    "ChangeDispatcher",
    "HookService",
    "MemoCache",
    "PlanService",
    "PlanView",
    "SessionService",
    "StepResult",
    "derive_view",
]
