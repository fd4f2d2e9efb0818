"""In-process change channel between the watcher and its consumer."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Literal, Optional

WatchEventType = Literal["sessions", "plan"]


@dataclass(frozen=True)
class WatchEvent:
    """A coalesced filesystem change."""

    type: WatchEventType
    timestamp: datetime

    @classmethod
    def now(cls, event_type: WatchEventType) -> "WatchEvent":
        return cls(type=event_type, timestamp=datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "timestamp": self.timestamp.isoformat()}


class ChangeChannel:
    """Ordered single-consumer channel of WatchEvents.

    ``publish`` never blocks. Iteration ends after ``close``, once every event
    published before the close has been consumed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[WatchEvent]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: WatchEvent) -> None:
        """Enqueue an event; ignored after close."""
        if self._closed:
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[WatchEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
