"""
Broadcast hub for Server-Sent Events subscribers.

Each subscriber is a set of callbacks supplied by its transport:

- ``deliver(message)``: write one data frame
- ``keepalive()``: write a keepalive comment, called every
  ``keepalive_seconds`` by a per-subscriber task
- ``on_terminate(cleanup)``: receives the subscriber's cleanup so the
  transport can run it when the connection closes
- ``on_close()``: optional; called once on disposal, so a transport
  dropped by the hub (shutdown or a failed delivery) can end its stream

Broadcasts are delivered synchronously in call order, so each subscriber
sees messages in the order they were broadcast. Late subscribers get no
replay.
"""

import asyncio
from typing import Any, Callable, Optional

from planwatch import telemetry
from planwatch.api.services.base import BaseService

Deliver = Callable[[Any], None]
Keepalive = Callable[[], None]
Dispose = Callable[[], None]


class _Subscriber:
    __slots__ = ("id", "deliver", "keepalive", "on_close", "task", "disposed")

    def __init__(
        self,
        subscriber_id: int,
        deliver: Deliver,
        keepalive: Keepalive,
        on_close: Optional[Callable[[], None]],
    ):
        self.id = subscriber_id
        self.deliver = deliver
        self.keepalive = keepalive
        self.on_close = on_close
        self.task: Optional[asyncio.Task] = None
        self.disposed = False


class BroadcastHub(BaseService):
    """Fan-out of change notifications to connected subscribers."""

    def __init__(self, keepalive_seconds: float = 30.0):
        super().__init__()
        self.keepalive_seconds = keepalive_seconds
        self._subscribers: dict[int, _Subscriber] = {}
        self._next_id = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(
        self,
        deliver: Deliver,
        keepalive: Keepalive,
        on_terminate: Callable[[Dispose], None],
        on_close: Optional[Callable[[], None]] = None,
    ) -> Dispose:
        """Register a subscriber and start its keepalive timer.

        Must be called from the event loop thread.

        Returns:
            Idempotent disposer that unregisters the subscriber and stops its
            keepalive timer
        """
        self._next_id += 1
        subscriber = _Subscriber(self._next_id, deliver, keepalive, on_close)
        self._subscribers[subscriber.id] = subscriber
        subscriber.task = asyncio.get_running_loop().create_task(
            self._keepalive_loop(subscriber)
        )

        def dispose() -> None:
            self._dispose(subscriber)

        on_terminate(dispose)
        self.logger.debug(f"Subscriber {subscriber.id} connected ({self.subscriber_count} total)")
        return dispose

    def broadcast(self, message: Any) -> None:
        """Deliver ``message`` to every current subscriber.

        A subscriber whose ``deliver`` raises is logged and disposed; the
        remaining subscribers still receive the message.
        """
        for subscriber in list(self._subscribers.values()):
            if subscriber.disposed:
                continue
            try:
                subscriber.deliver(message)
            except Exception as e:
                self.logger.warning(f"Dropping subscriber {subscriber.id}: delivery failed: {e}")
                self._dispose(subscriber)

        message_type = message.get("type", "unknown") if isinstance(message, dict) else "unknown"
        telemetry.broadcast_counter.add(1, {"type": str(message_type)})

    def close(self) -> None:
        """Dispose every subscriber (server shutdown)."""
        for subscriber in list(self._subscribers.values()):
            self._dispose(subscriber)

    async def health_check(self) -> dict[str, Any]:
        return {"connectedClients": self.subscriber_count}

    # --- internals ---

    def _dispose(self, subscriber: _Subscriber) -> None:
        if subscriber.disposed:
            return
        subscriber.disposed = True
        self._subscribers.pop(subscriber.id, None)
        if subscriber.task is not None and subscriber.task is not _current_task():
            subscriber.task.cancel()
        if subscriber.on_close is not None:
            try:
                subscriber.on_close()
            except Exception as e:
                self.logger.warning(f"Close callback of subscriber {subscriber.id} failed: {e}")
        self.logger.debug(f"Subscriber {subscriber.id} disconnected ({self.subscriber_count} left)")

    async def _keepalive_loop(self, subscriber: _Subscriber) -> None:
        while not subscriber.disposed:
            await asyncio.sleep(self.keepalive_seconds)
            if subscriber.disposed:
                return
            try:
                subscriber.keepalive()
            except Exception as e:
                self.logger.warning(f"Dropping subscriber {subscriber.id}: keepalive failed: {e}")
                self._dispose(subscriber)
                return


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
