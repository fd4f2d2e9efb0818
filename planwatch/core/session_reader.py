"""Live session reader.

Reads the per-session todo lists the agent keeps in its data directory:

- ``tasks/<session>/<n>.json``: legacy layout, one JSON file per task
- ``todos/<session>-agent-<session>.json``: current layout, one JSON array
  per session

Missing directories and unreadable files read as empty; nothing here raises
for filesystem problems.
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from planwatch.core.models import LiveSession, LiveTask
from planwatch.logging import get_logger

logger = get_logger(__name__)

_SKIP_FILES = {".lock", ".highwatermark"}
_VALID_STATUSES = ("pending", "in_progress", "completed")
_TODOS_FILENAME = re.compile(r"^([A-Za-z0-9-]+?)-agent-")


def read_sessions(claude_dir: Path) -> list[LiveSession]:
    """Read every session with at least one valid task.

    Sessions found in both layouts keep the todos/ version. The result is
    sorted by ``updated_at``, most recent first.
    """
    sessions: dict[str, LiveSession] = {}

    tasks_dir = claude_dir / "tasks"
    for session_dir in _list_dir(tasks_dir):
        if not session_dir.is_dir():
            continue
        session = read_session(tasks_dir, session_dir.name)
        if session is not None:
            sessions[session.id] = session

    todos_dir = claude_dir / "todos"
    for todo_file in _list_dir(todos_dir):
        if todo_file.suffix != ".json":
            continue
        session = _read_todos_file(todo_file)
        if session is not None:
            sessions[session.id] = session

    return sorted(sessions.values(), key=lambda s: s.updated_at, reverse=True)


def read_session(tasks_dir: Path, session_id: str) -> LiveSession | None:
    """Read one legacy session directory; None when it has no valid task."""
    session_dir = tasks_dir / session_id
    tasks: list[LiveTask] = []
    created: list[float] = []
    modified: list[float] = []

    for entry in _list_dir(session_dir):
        if entry.suffix != ".json" or entry.name in _SKIP_FILES:
            continue
        try:
            record = json.loads(entry.read_text(encoding="utf-8"))
            stat = entry.stat()
        except (OSError, ValueError) as e:
            logger.debug(f"Skipping unreadable task file {entry}: {e}")
            continue
        task = _task_from_record(record, fallback_id=None)
        if task is None:
            continue
        tasks.append(task)
        created.append(_birth_time(stat))
        modified.append(stat.st_mtime)

    if not tasks:
        return None

    tasks.sort(key=_task_sort_key)
    return LiveSession(
        id=session_id,
        tasks=tuple(tasks),
        created_at=_to_datetime(min(created)),
        updated_at=_to_datetime(max(modified)),
    )


def _read_todos_file(path: Path) -> LiveSession | None:
    match = _TODOS_FILENAME.match(path.name)
    if not match:
        return None

    try:
        records = json.loads(path.read_text(encoding="utf-8"))
        stat = path.stat()
    except (OSError, ValueError) as e:
        logger.debug(f"Skipping unreadable todos file {path}: {e}")
        return None
    if not isinstance(records, list):
        return None

    tasks = [
        task
        for index, record in enumerate(records)
        if (task := _task_from_record(record, fallback_id=str(index + 1))) is not None
    ]
    if not tasks:
        return None

    return LiveSession(
        id=match.group(1),
        tasks=tuple(tasks),
        created_at=_to_datetime(_birth_time(stat)),
        updated_at=_to_datetime(stat.st_mtime),
    )


def _task_from_record(record: Any, fallback_id: str | None) -> LiveTask | None:
    """Validate one task record; the todos layout has ``content`` and no id."""
    if not isinstance(record, dict):
        return None

    status = record.get("status")
    if status not in _VALID_STATUSES:
        return None

    task_id = record.get("id")
    if not isinstance(task_id, str):
        if fallback_id is None:
            return None
        task_id = fallback_id

    subject = record.get("content", record.get("subject"))
    return LiveTask(
        id=task_id,
        subject=subject if isinstance(subject, str) else "",
        description=_str(record.get("description")),
        active_form=_str(record.get("activeForm")),
        status=status,
        blocks=_str_tuple(record.get("blocks")),
        blocked_by=_str_tuple(record.get("blockedBy")),
    )


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _task_sort_key(task: LiveTask) -> tuple[int, int, str]:
    """Numeric ids in numeric order first, then the rest alphabetically."""
    if task.id.isdigit():
        return (0, int(task.id), "")
    return (1, 0, task.id)


def _list_dir(path: Path) -> list[Path]:
    try:
        return sorted(path.iterdir())
    except OSError:
        return []


def _birth_time(stat: Any) -> float:
    return getattr(stat, "st_birthtime", stat.st_ctime)


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
