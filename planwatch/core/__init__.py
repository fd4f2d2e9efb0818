"""Core record model, parsers and the status derivation engine.

Everything in this package except the git helpers is free of I/O side
effects beyond reading the files it is pointed at.
"""

from planwatch.core.log_parser import format_event, parse_log
from planwatch.core.models import (
    CompactState,
    ComputedTask,
    Event,
    EventStatus,
    HookEvent,
    LiveSession,
    LiveTask,
    Snapshot,
    SliceSummary,
    Summary,
    Task,
    TaskStatus,
)
from planwatch.core.queue_parser import parse_queue
from planwatch.core.state_engine import compute_snapshot

__all__ = [
    "CompactState",
    "ComputedTask",
    "Event",
    "EventStatus",
    "HookEvent",
    "LiveSession",
    "LiveTask",
    "Snapshot",
    "SliceSummary",
    "Summary",
    "Task",
    "TaskStatus",
    "compute_snapshot",
    "format_event",
    "parse_log",
    "parse_queue",
]
