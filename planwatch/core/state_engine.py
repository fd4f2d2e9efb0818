"""Status derivation engine.

Merges the task graph of a queue with the events of an execution log into one
immutable Snapshot. The function is pure and total: it performs no I/O, never
raises for well-typed input, and returns equal snapshots for equal input.

Status rules, in priority order, for each task:

1. latest event DONE        -> DONE (regardless of dependencies)
2. latest event FAILED      -> FAILED
3. latest event BLOCKED     -> BLOCKED
4. latest event IN_PROGRESS -> IN_PROGRESS
5. no event                 -> READY if every dependency resolved to DONE
                               in this pass, else BLOCKED

The latest event is the one with the greatest timestamp; among equal
timestamps the one appended later to the log wins.
"""

from collections import defaultdict
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Sequence

from planwatch.core.graph import is_cycle, strongly_connected_components
from planwatch.core.models import (
    ComputedTask,
    Event,
    EventStatus,
    SliceSummary,
    Snapshot,
    Summary,
    Task,
    TaskStatus,
)

CYCLE_REASON = "dependency cycle"

_EVENT_TO_TASK_STATUS = {
    EventStatus.DONE: TaskStatus.DONE,
    EventStatus.FAILED: TaskStatus.FAILED,
    EventStatus.BLOCKED: TaskStatus.BLOCKED,
    EventStatus.IN_PROGRESS: TaskStatus.IN_PROGRESS,
}


def compute_snapshot(tasks: Sequence[Task], events: Iterable[Event]) -> Snapshot:
    """Derive a Snapshot from a task set and an event log.

    Args:
        tasks: Tasks in queue order (ids are expected to be unique; later
            duplicates are ignored)
        events: Events in log order

    Returns:
        Snapshot owning a fresh set of ComputedTask values
    """
    tasks = _unique(tasks)
    events_by_task = _index_events(events)
    last_events = {
        task_id: task_events[-1] for task_id, task_events in events_by_task.items()
    }

    by_id = {task.id: task for task in tasks}
    edges = {
        task.id: [dep for dep in task.depends_on if dep in by_id] for task in tasks
    }

    resolved: dict[str, ComputedTask] = {}
    for component in strongly_connected_components([t.id for t in tasks], edges):
        in_cycle = is_cycle(component, edges)
        for task_id in component:
            resolved[task_id] = _resolve(
                by_id[task_id], last_events.get(task_id), resolved, in_cycle
            )

    computed = tuple(resolved[task.id] for task in tasks)
    summary, slices = _rollup(computed)

    return Snapshot(
        tasks=computed,
        summary=summary,
        slices=MappingProxyType(slices),
        events_by_task=MappingProxyType(
            {task_id: tuple(evts) for task_id, evts in events_by_task.items()}
        ),
    )


def _unique(tasks: Sequence[Task]) -> list[Task]:
    seen: set[str] = set()
    unique = []
    for task in tasks:
        if task.id not in seen:
            seen.add(task.id)
            unique.append(task)
    return unique


def _index_events(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group events by task id, chronological, log order within a timestamp."""
    grouped: dict[str, list[tuple[datetime, int, Event]]] = defaultdict(list)
    for position, event in enumerate(events):
        grouped[event.task_id].append((_as_aware(event.timestamp), position, event))
    return {
        task_id: [event for _, _, event in sorted(entries, key=lambda e: e[:2])]
        for task_id, entries in grouped.items()
    }


def _as_aware(timestamp: datetime) -> datetime:
    return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)


def _resolve(
    task: Task,
    last_event: Event | None,
    resolved: dict[str, ComputedTask],
    in_cycle: bool,
) -> ComputedTask:
    blocked_reason = None

    if last_event is not None:
        status = _EVENT_TO_TASK_STATUS[last_event.status]
        if status is TaskStatus.BLOCKED:
            blocked_reason = last_event.reason
    elif in_cycle:
        status = TaskStatus.BLOCKED
        blocked_reason = CYCLE_REASON
    else:
        pending = [
            dep
            for dep in task.depends_on
            if dep not in resolved or resolved[dep].status is not TaskStatus.DONE
        ]
        if pending:
            status = TaskStatus.BLOCKED
            blocked_reason = _waiting_reason(pending, resolved)
        else:
            status = TaskStatus.READY

    return ComputedTask(
        id=task.id,
        description=task.description,
        area=task.area,
        slice=task.slice,
        acceptance_criteria=task.acceptance_criteria,
        depends_on=task.depends_on,
        status=status,
        last_event=last_event,
        blocked_reason=blocked_reason,
    )


def _waiting_reason(pending: list[str], resolved: dict[str, ComputedTask]) -> str:
    unknown = [dep for dep in pending if dep not in resolved]
    if unknown:
        return f"unknown dependency: {', '.join(unknown)}"
    return f"waiting on: {', '.join(pending)}"


def _rollup(computed: tuple[ComputedTask, ...]) -> tuple[Summary, dict[str, SliceSummary]]:
    """Summary and per-slice counts in one scan."""
    totals = _Counts()
    per_slice: dict[str, _Counts] = {}

    for task in computed:
        totals.add(task.status)
        per_slice.setdefault(task.slice, _Counts()).add(task.status)

    terminal = totals.done + totals.failed
    summary = Summary(
        total=totals.total,
        done=totals.done,
        failed=totals.failed,
        blocked=totals.blocked,
        ready=totals.ready,
        in_progress=totals.in_progress,
        success_rate=totals.done / terminal if terminal else 0.0,
    )
    slices = {
        name: SliceSummary(
            slice=name,
            total=counts.total,
            done=counts.done,
            failed=counts.failed,
            blocked=counts.blocked,
            ready=counts.ready,
            in_progress=counts.in_progress,
            progress=counts.done / counts.total * 100 if counts.total else 0.0,
        )
        for name, counts in per_slice.items()
    }
    return summary, slices


class _Counts:
    __slots__ = ("total", "done", "failed", "blocked", "ready", "in_progress")

    def __init__(self) -> None:
        self.total = self.done = self.failed = 0
        self.blocked = self.ready = self.in_progress = 0

    def add(self, status: TaskStatus) -> None:
        self.total += 1
        if status is TaskStatus.DONE:
            self.done += 1
        elif status is TaskStatus.FAILED:
            self.failed += 1
        elif status is TaskStatus.BLOCKED:
            self.blocked += 1
        elif status is TaskStatus.READY:
            self.ready += 1
        else:
            self.in_progress += 1
