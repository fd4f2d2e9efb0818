"""Execution log parser.

The log is append-only JSON lines, one task-attempt outcome per line::

    {"task": "S1-T1", "status": "DONE", "timestamp": "2026-01-05T10:00:00Z",
     "agent": "claude", "meta": {"duration": 42, "commit": "3f2a91c"}}

The external writer is not transactional, so a half-written last line is
normal; unreadable lines are skipped and reported, never raised.
"""

import json
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from planwatch.core.models import Event, EventStatus, LogParseResult

_TASK_KEYS = ("task", "task_id", "taskId")


def parse_log(text: str) -> LogParseResult:
    """Parse execution log text into events in file order.

    Args:
        text: Full contents of the log file

    Returns:
        LogParseResult with events in log order and one error per skipped line
    """
    events: list[Event] = []
    errors: list[str] = []

    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            errors.append(f"Line {line_no}: invalid JSON ({e.msg})")
            continue
        if not isinstance(record, dict):
            errors.append(f"Line {line_no}: expected a JSON object")
            continue

        problem = _validate(record)
        if problem:
            errors.append(f"Line {line_no}: {problem}")
            continue

        events.append(_to_event(record))

    return LogParseResult(events=tuple(events), errors=tuple(errors))


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_event(
    task_id: str,
    status: EventStatus,
    timestamp: datetime,
    agent: str,
    reason: str | None = None,
    meta: dict[str, Any] | None = None,
) -> str:
    """Serialize one event as a log line (newline terminated)."""
    record: dict[str, Any] = {
        "task": task_id,
        "status": status.value,
        "timestamp": timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "agent": agent,
    }
    if reason:
        record["reason"] = reason
    if meta:
        record["meta"] = meta
    return json.dumps(record) + "\n"


def _task_id(record: dict[str, Any]) -> Any:
    for key in _TASK_KEYS:
        if key in record:
            return record[key]
    return None


def _validate(record: dict[str, Any]) -> str | None:
    task_id = _task_id(record)
    if not isinstance(task_id, str) or not task_id:
        return "missing task id"

    status = record.get("status")
    if not isinstance(status, str) or status not in EventStatus.__members__:
        return f"unknown status {status!r}"

    timestamp = record.get("timestamp")
    if not isinstance(timestamp, str):
        return "missing timestamp"
    try:
        parse_timestamp(timestamp)
    except ValueError:
        return f"invalid timestamp {timestamp!r}"

    return None


def _to_event(record: dict[str, Any]) -> Event:
    meta = record.get("meta")
    reason = record.get("reason")
    agent = record.get("agent")
    return Event(
        task_id=_task_id(record),
        status=EventStatus(record["status"]),
        timestamp=parse_timestamp(record["timestamp"]),
        agent=agent if isinstance(agent, str) and agent else "unknown",
        reason=reason if isinstance(reason, str) and reason else None,
        meta=MappingProxyType(dict(meta)) if isinstance(meta, dict) else MappingProxyType({}),
    )
