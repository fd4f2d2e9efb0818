"""
Plan service.

Owns the memoised plan snapshot for one plan directory. The snapshot is
derived lazily from ``queue.md`` and ``execution.log`` on the first read after
an invalidation; file reads run in a worker thread.
"""

import asyncio
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional

from planwatch.api.services.base import BaseService
from planwatch.api.services.memo_cache import MemoCache
from planwatch.core.log_parser import format_event, parse_log
from planwatch.core.models import Event, EventStatus, Snapshot
from planwatch.core.queue_parser import parse_queue
from planwatch.core.state_engine import compute_snapshot
from planwatch.errors import (
    InvalidStatusOverrideError,
    PlanNotConfiguredError,
    TaskNotFoundError,
)
from planwatch.logging import get_logger

logger = get_logger(__name__)

QUEUE_FILE = "queue.md"
LOG_FILE = "execution.log"
OVERRIDE_AGENT = "planwatch"
OVERRIDE_STATUSES = (EventStatus.DONE, EventStatus.BLOCKED)

PlanState = Literal["no_plan", "parse_errors", "loaded"]


@dataclass(frozen=True)
class PlanView:
    """What a reader of the plan sees: the snapshot plus parse diagnostics."""

    state: PlanState
    snapshot: Optional[Snapshot] = None
    queue_errors: tuple[str, ...] = ()
    log_errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "queueErrors": list(self.queue_errors),
            "logErrors": list(self.log_errors),
        }


NO_PLAN = PlanView(state="no_plan")


class PlanService(BaseService):
    """Memoised snapshot of a plan directory and the status-override mutation."""

    def __init__(self, plan_dir: Optional[Path]):
        super().__init__()
        self.plan_dir = plan_dir
        self._cache: MemoCache[PlanView] = MemoCache(self._derive, name="plan")
        self._write_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self.plan_dir is not None

    @property
    def queue_path(self) -> Optional[Path]:
        return self.plan_dir / QUEUE_FILE if self.plan_dir else None

    @property
    def log_path(self) -> Optional[Path]:
        return self.plan_dir / LOG_FILE if self.plan_dir else None

    def has_queue(self) -> bool:
        return self.queue_path is not None and self.queue_path.is_file()

    async def read(self) -> PlanView:
        """Current plan view, recomputed if a change was signalled since."""
        return await self._cache.read()

    def invalidate(self) -> None:
        self._cache.invalidate()

    async def task_events(self, task_id: str) -> tuple[Event, ...]:
        """Chronological event timeline of one task.

        Raises:
            PlanNotConfiguredError: No plan directory or no queue file
            TaskNotFoundError: The id is neither a task nor present in the log
        """
        snapshot = await self._require_snapshot()
        events = snapshot.events_by_task.get(task_id)
        if events is None:
            if snapshot.get_task(task_id) is None:
                raise TaskNotFoundError(
                    f"Task '{task_id}' not found", details={"task_id": task_id}
                )
            return ()
        return events

    async def override_status(self, task_id: str, status: str) -> Event:
        """Record a manual status change by appending a synthetic event.

        The snapshot itself is never modified; the appended log line is picked
        up by the next derivation like any other event.

        Raises:
            InvalidStatusOverrideError: Status other than DONE or BLOCKED
            PlanNotConfiguredError: No plan directory or no queue file
            TaskNotFoundError: Unknown task id
        """
        if status not in {s.value for s in OVERRIDE_STATUSES}:
            raise InvalidStatusOverrideError(
                f"Status must be one of {[s.value for s in OVERRIDE_STATUSES]}, got {status!r}",
                details={"status": status},
            )

        snapshot = await self._require_snapshot()
        if snapshot.get_task(task_id) is None:
            raise TaskNotFoundError(f"Task '{task_id}' not found", details={"task_id": task_id})

        event = Event(
            task_id=task_id,
            status=EventStatus(status),
            timestamp=datetime.now(timezone.utc),
            agent=OVERRIDE_AGENT,
            reason=f"Status set to {status} via dashboard",
        )
        line = format_event(
            event.task_id, event.status, event.timestamp, event.agent, event.reason
        )
        async with self._write_lock:
            await asyncio.to_thread(_append_line, self.log_path, line)

        self.invalidate()
        self.log_operation("Status override", task_id=task_id, status=status)
        return event

    async def health_check(self) -> dict[str, Any]:
        view = await self.read()
        return {
            "configured": self.configured,
            "state": view.state,
            "tasks": len(view.snapshot.tasks) if view.snapshot else 0,
        }

    # --- internals ---

    async def _require_snapshot(self) -> Snapshot:
        if not self.configured:
            raise PlanNotConfiguredError("No plan directory is configured")
        view = await self.read()
        if view.snapshot is None:
            raise PlanNotConfiguredError(
                f"No {QUEUE_FILE} found in {self.plan_dir}",
                details={"plan_dir": str(self.plan_dir)},
            )
        return view.snapshot

    async def _derive(self) -> PlanView:
        if self.plan_dir is None:
            return NO_PLAN
        started = time.perf_counter()
        view = await asyncio.to_thread(derive_view, self.queue_path, self.log_path)
        self.log_duration("plan derivation", started)
        return view


def derive_view(queue_path: Path, log_path: Path) -> PlanView:
    """Derive the plan view from the queue and log files, synchronously."""
    queue_text = _read_text(queue_path)
    if queue_text is None:
        return NO_PLAN
    queue = parse_queue(queue_text)
    log = parse_log(_read_text(log_path) or "")
    return PlanView(
        state="parse_errors" if queue.errors else "loaded",
        snapshot=compute_snapshot(queue.tasks, log.events),
        queue_errors=queue.errors,
        log_errors=log.errors,
    )


def _read_text(path: Path) -> Optional[str]:
    """Read a plan file, treating any filesystem error as absence.

    Undecodable bytes (a writer caught mid multibyte character) are replaced
    so the parser can report the broken line instead of failing the read.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return None
    return data.decode("utf-8", errors="replace")


def _append_line(path: Path, line: str) -> None:
    # An external writer may have left the last line unterminated.
    prefix = ""
    try:
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            if f.tell() > 0:
                f.seek(-1, os.SEEK_END)
                if f.read(1) != b"\n":
                    prefix = "\n"
    except FileNotFoundError:
        pass
    with open(path, "a", encoding="utf-8") as f:
        f.write(prefix + line)
