"""Builders for queue, log and session files used across the tests."""

import json
from datetime import datetime, timezone
from pathlib import Path

from planwatch.core.models import Event, EventStatus, Task

SAMPLE_QUEUE = """\
# Slice S1: Foundation

## A
Area: Core
Depends: -
Description: Create the data model
AC: Model has id and name fields

## B
Area: API
Depends: A
Description: Expose the model over HTTP
"""

BASE_TIME = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


def log_line(task_id, status, timestamp, agent="claude", **extra):
    """One execution log line (newline terminated)."""
    record = {"task": task_id, "status": status, "timestamp": timestamp, "agent": agent}
    record.update(extra)
    return json.dumps(record) + "\n"


def make_task(task_id, depends_on=(), slice_name="S1"):
    return Task(
        id=task_id,
        description=f"Task {task_id}",
        area="Core",
        slice=slice_name,
        depends_on=tuple(depends_on),
    )


def make_event(task_id, status, timestamp=BASE_TIME, reason=None, agent="claude"):
    return Event(
        task_id=task_id,
        status=EventStatus(status),
        timestamp=timestamp,
        agent=agent,
        reason=reason,
    )


def write_session_task(claude_dir: Path, session_id: str, task_id: str, status="pending", **extra):
    """Write ``tasks/<session>/<task_id>.json`` in the legacy layout."""
    session_dir = claude_dir / "tasks" / session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    record = {"id": task_id, "subject": f"Task {task_id}", "status": status}
    record.update(extra)
    path = session_dir / f"{task_id}.json"
    path.write_text(json.dumps(record))
    return path
