"""Record model for planwatch.

Defines the value types read from the queue and the execution log, the
derived snapshot types produced by the state engine, and the records of the
live-session and hook paths. All records are frozen dataclasses; a snapshot
is superseded wholesale, never patched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping


class EventStatus(str, Enum):
    """Outcome recorded by one execution log row."""

    DONE = "DONE"
    FAILED = "FAILED"
    BLOCKED = "BLOCKED"
    IN_PROGRESS = "IN_PROGRESS"


class TaskStatus(str, Enum):
    """Derived status of a task in a snapshot."""

    READY = "READY"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    DONE = "DONE"
    FAILED = "FAILED"


StepType = Literal["thought", "tool_call", "observation", "error"]


@dataclass(frozen=True)
class Task:
    """A task declared in the queue."""

    id: str
    description: str
    area: str
    slice: str
    acceptance_criteria: str | None = None
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExecutionStep:
    """One step of an agent's attempt, carried in an event's meta."""

    type: StepType
    content: str


@dataclass(frozen=True)
class Event:
    """One task-attempt outcome from the execution log.

    Events with equal timestamps are ordered by their position in the log.
    """

    task_id: str
    status: EventStatus
    timestamp: datetime
    agent: str
    reason: str | None = None
    meta: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def steps(self) -> tuple[ExecutionStep, ...]:
        """Execution steps recorded in ``meta["steps"]``, if any."""
        raw = self.meta.get("steps")
        if not isinstance(raw, (list, tuple)):
            return ()
        steps = []
        for item in raw:
            if isinstance(item, Mapping) and item.get("type") in (
                "thought",
                "tool_call",
                "observation",
                "error",
            ):
                steps.append(ExecutionStep(item["type"], str(item.get("content", ""))))
        return tuple(steps)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "taskId": self.task_id,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "agent": self.agent,
            "reason": self.reason,
            "meta": dict(self.meta),
        }


@dataclass(frozen=True)
class ComputedTask:
    """A task joined with its latest event and its derived status."""

    id: str
    description: str
    area: str
    slice: str
    acceptance_criteria: str | None
    depends_on: tuple[str, ...]
    status: TaskStatus
    last_event: Event | None = None
    blocked_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "id": self.id,
            "description": self.description,
            "area": self.area,
            "slice": self.slice,
            "acceptanceCriteria": self.acceptance_criteria,
            "dependsOn": list(self.depends_on),
            "status": self.status.value,
            "lastEvent": self.last_event.to_dict() if self.last_event else None,
            "blockedReason": self.blocked_reason,
        }


@dataclass(frozen=True)
class Summary:
    """Status counts over all tasks of a snapshot."""

    total: int = 0
    done: int = 0
    failed: int = 0
    blocked: int = 0
    ready: int = 0
    in_progress: int = 0
    success_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "done": self.done,
            "failed": self.failed,
            "blocked": self.blocked,
            "ready": self.ready,
            "inProgress": self.in_progress,
            "successRate": self.success_rate,
        }


@dataclass(frozen=True)
class SliceSummary:
    """Status counts for one slice, plus percentage done."""

    slice: str
    total: int = 0
    done: int = 0
    failed: int = 0
    blocked: int = 0
    ready: int = 0
    in_progress: int = 0
    progress: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "slice": self.slice,
            "total": self.total,
            "done": self.done,
            "failed": self.failed,
            "blocked": self.blocked,
            "ready": self.ready,
            "inProgress": self.in_progress,
            "progress": self.progress,
        }


@dataclass(frozen=True)
class Snapshot:
    """One fully derived, immutable view of a plan.

    Attributes:
        tasks: Computed tasks in queue order
        summary: Counts over all tasks
        slices: Per-slice rollups keyed by slice name
        events_by_task: Every event of the log grouped by task id in
            chronological order, including ids that match no task
    """

    tasks: tuple[ComputedTask, ...]
    summary: Summary
    slices: Mapping[str, SliceSummary]
    events_by_task: Mapping[str, tuple[Event, ...]]

    def get_task(self, task_id: str) -> ComputedTask | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def ready_task_ids(self) -> list[str]:
        return [t.id for t in self.tasks if t.status is TaskStatus.READY]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "summary": self.summary.to_dict(),
            "slices": {name: s.to_dict() for name, s in self.slices.items()},
        }


@dataclass(frozen=True)
class QueueParseResult:
    """Tasks read from the queue plus any queue-level errors."""

    tasks: tuple[Task, ...]
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class LogParseResult:
    """Events read from the execution log plus skipped-line errors."""

    events: tuple[Event, ...]
    errors: tuple[str, ...] = ()


# --- Live sessions ---

LiveTaskStatus = Literal["pending", "in_progress", "completed"]


@dataclass(frozen=True)
class LiveTask:
    """A todo item of a live agent session."""

    id: str
    subject: str
    description: str
    active_form: str
    status: LiveTaskStatus
    blocks: tuple[str, ...] = ()
    blocked_by: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "description": self.description,
            "activeForm": self.active_form,
            "status": self.status,
            "blocks": list(self.blocks),
            "blockedBy": list(self.blocked_by),
        }


@dataclass(frozen=True)
class LiveSession:
    """A live agent session and its todo list."""

    id: str
    tasks: tuple[LiveTask, ...]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tasks": [t.to_dict() for t in self.tasks],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


# --- Hooks ---


@dataclass(frozen=True)
class HookEvent:
    """A lifecycle signal received from the agent's hook wiring."""

    event: str
    received_at: datetime
    tool: str | None = None
    session: str | None = None
    cwd: str | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict[str, Any]:
        """Passthrough fields first, normalized fields on top."""
        data = dict(self.extra)
        data.update(
            {
                "type": "hook",
                "event": self.event,
                "tool": self.tool,
                "session": self.session,
                "cwd": self.cwd,
                "receivedAt": self.received_at.isoformat(),
            }
        )
        return data


@dataclass(frozen=True)
class CompactState:
    """Projection of a snapshot saved before context compaction."""

    compacted_at: str
    session_id: str | None
    summary: Summary
    ready_tasks: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "compactedAt": self.compacted_at,
            "sessionId": self.session_id,
            "summary": self.summary.to_dict(),
            "readyTasks": list(self.ready_tasks),
        }
