"""Single-value memo with lazy, single-flight recomputation."""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from planwatch import telemetry

T = TypeVar("T")


class MemoCache(Generic[T]):
    """
    Holds one derived value and recomputes it on the first read after an
    invalidation.

    At most one recomputation runs at a time; concurrent readers wait for it
    and share its result. A value whose computation overlapped an
    ``invalidate()`` is returned to the readers that waited for it but is not
    memoised, so the next read recomputes from the newer state.
    """

    def __init__(self, compute: Callable[[], Awaitable[T]], name: str = "cache"):
        self._compute = compute
        self._name = name
        self._value: Optional[T] = None
        self._valid = False
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> None:
        """Mark the memoised value stale. Cheap; never recomputes."""
        self._generation += 1
        self._valid = False

    async def read(self) -> T:
        """Return the memoised value, recomputing it if stale."""
        if self._valid:
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if self._valid:
                return self._value  # type: ignore[return-value]

            generation = self._generation
            value = await self._compute()
            telemetry.recompute_counter.add(1, {"cache": self._name})

            if generation == self._generation:
                self._value = value
                self._valid = True
            return value
