"""Queue parser for plan ``queue.md`` files.

Parses the markdown queue written by the agent into Task objects. Parsing is
lenient: problems are collected as error strings and returned next to the
tasks, never raised.

Expected layout::

    # Slice S1: Foundation

    ## S1-T1
    Area: Core
    Depends: -
    Description: Create the data model
    AC: Model has id and name fields

    ## S1-T2
    Area: API
    Depends: S1-T1
    Description: Expose the model over HTTP
"""

import re
from dataclasses import dataclass, field

from planwatch.core.graph import is_cycle, strongly_connected_components
from planwatch.core.models import QueueParseResult, Task

UNSLICED = "Unsliced"

_SLICE_HEADER = re.compile(r"^#\s+Slice\s+(.+?)\s*$", re.IGNORECASE)
_TASK_HEADER = re.compile(r"^##\s+([^\s:]+)\s*(?::.*)?$")
_FIELD_LINE = re.compile(
    r"^(Area|Depends(?:\s+On)?|Description|AC|Acceptance(?:\s+Criteria)?)\s*:\s*(.*)$",
    re.IGNORECASE,
)

_NO_DEPENDENCIES = {"", "-", "none", "n/a"}


@dataclass
class _TaskDraft:
    id: str
    slice: str
    line: int
    fields: dict[str, list[str]] = field(default_factory=dict)
    last_field: str | None = None


def parse_queue(text: str) -> QueueParseResult:
    """Parse queue markdown into tasks and queue-level errors.

    Args:
        text: Full contents of the queue file

    Returns:
        QueueParseResult with tasks in file order and collected errors
    """
    errors: list[str] = []
    drafts = _read_drafts(text, errors)

    tasks: list[Task] = []
    seen: set[str] = set()
    for draft in drafts:
        if draft.id in seen:
            errors.append(
                f"Line {draft.line}: duplicate task id {draft.id}, later definition ignored"
            )
            continue
        seen.add(draft.id)
        tasks.append(_build_task(draft))

    _validate_dependencies(tasks, errors)

    return QueueParseResult(tasks=tuple(tasks), errors=tuple(errors))


def _read_drafts(text: str, errors: list[str]) -> list[_TaskDraft]:
    """Split the file into task drafts keyed by their field names."""
    drafts: list[_TaskDraft] = []
    current_slice: str | None = None
    current: _TaskDraft | None = None

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip()

        slice_match = _SLICE_HEADER.match(line)
        if slice_match:
            current_slice = _slice_name(slice_match.group(1))
            current = None
            continue

        task_match = _TASK_HEADER.match(line)
        if task_match:
            task_id = task_match.group(1)
            if current_slice is None:
                errors.append(f"Line {line_no}: task {task_id} is not inside a slice")
            current = _TaskDraft(
                id=task_id, slice=current_slice or UNSLICED, line=line_no
            )
            drafts.append(current)
            continue

        if current is None or line.startswith("#"):
            continue

        field_match = _FIELD_LINE.match(line.strip())
        if field_match:
            key = _field_key(field_match.group(1))
            current.fields[key] = [field_match.group(2).strip()]
            current.last_field = key
        elif line.strip() and current.last_field in ("description", "ac"):
            # Continuation of a multi-line description or acceptance criteria
            current.fields[current.last_field].append(line.strip())

    return drafts


def _slice_name(header: str) -> str:
    """``S1: Foundation`` -> ``S1``."""
    return header.split(":", 1)[0].strip() or UNSLICED


def _field_key(name: str) -> str:
    name = name.lower()
    if name.startswith("depends"):
        return "depends"
    if name == "ac" or name.startswith("acceptance"):
        return "ac"
    return name


def _build_task(draft: _TaskDraft) -> Task:
    fields = draft.fields
    description = " ".join(fields.get("description", [])).strip()
    ac_lines = fields.get("ac")
    acceptance = "\n".join(line for line in ac_lines if line) if ac_lines else None

    return Task(
        id=draft.id,
        description=description,
        area=" ".join(fields.get("area", [])).strip(),
        slice=draft.slice,
        acceptance_criteria=acceptance or None,
        depends_on=_parse_depends(" ".join(fields.get("depends", []))),
    )


def _parse_depends(value: str) -> tuple[str, ...]:
    """Comma separated ids; order kept, duplicates dropped."""
    if value.strip().lower() in _NO_DEPENDENCIES:
        return ()
    deps: list[str] = []
    for part in value.split(","):
        dep = part.strip()
        if dep and dep.lower() not in _NO_DEPENDENCIES and dep not in deps:
            deps.append(dep)
    return tuple(deps)


def _validate_dependencies(tasks: list[Task], errors: list[str]) -> None:
    """Report unknown ids, self references and cycles."""
    known = {task.id for task in tasks}
    edges: dict[str, list[str]] = {}

    for task in tasks:
        edges[task.id] = []
        for dep in task.depends_on:
            if dep not in known:
                errors.append(f"Task {task.id} depends on unknown task {dep}")
                continue
            if dep == task.id:
                errors.append(f"Task {task.id} depends on itself")
            edges[task.id].append(dep)

    for component in strongly_connected_components([t.id for t in tasks], edges):
        if len(component) > 1 and is_cycle(component, edges):
            errors.append(f"Dependency cycle between tasks: {', '.join(component)}")
