"""Change dispatcher: applies watch events to the caches, then broadcasts them."""

import asyncio
from typing import Optional

from planwatch.api.services.plan_service import PlanService
from planwatch.api.services.session_service import SessionService
from planwatch.api.services.sse_hub import BroadcastHub
from planwatch.logging import get_logger
from planwatch.watcher import ChangeChannel, WatchEvent

logger = get_logger(__name__)


class ChangeDispatcher:
    """
    Single consumer of the change channel.

    Events are handled strictly one at a time, in channel order. ``plan``
    invalidates the plan cache; ``sessions`` (which also stands for a window
    that mixed both kinds) invalidates both caches. Subscribers are notified
    only after the invalidation, so a client that refetches on a notification
    always sees the newer state.
    """

    def __init__(
        self,
        channel: ChangeChannel,
        hub: BroadcastHub,
        plan_service: PlanService,
        session_service: SessionService,
    ):
        self.channel = channel
        self.hub = hub
        self.plan_service = plan_service
        self.session_service = session_service
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self.run())

    async def stop(self) -> None:
        """Close the channel and wait for queued events to drain."""
        self.channel.close()
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Change dispatcher did not drain in time; cancelling")
                self._task.cancel()
            self._task = None

    async def run(self) -> None:
        async for event in self.channel:
            try:
                self.apply(event)
            except Exception as e:
                logger.error(f"Failed to dispatch {event.type} change: {e}", exc_info=True)

    def apply(self, event: WatchEvent) -> None:
        """Invalidate the affected caches, then broadcast."""
        if event.type == "plan":
            self.plan_service.invalidate()
        else:
            self.session_service.invalidate()
            self.plan_service.invalidate()
        self.hub.broadcast(event.to_dict())
