"""Context snapshots.

A context snapshot records where the working tree stood at a point in time
(branch, head commit, uncommitted files, recent history) so an agent whose
context was compacted can find its way back. Snapshots taken right after an
auto-commit are named after that commit; all others after their timestamp.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from planwatch.core.vcs import DEFAULT_TIMEOUT_SECONDS, run_git
from planwatch.errors import GitCommandError
from planwatch.logging import get_logger

logger = get_logger(__name__)

SNAPSHOTS_SUBDIR = "snapshots"
RECENT_COMMITS = 5


@dataclass(frozen=True)
class ContextSnapshot:
    """Point-in-time view of a working tree."""

    id: str
    focus: str
    created_at: str
    cwd: str
    commit_tied: bool
    branch: str | None = None
    head: str | None = None
    dirty_files: list[str] = field(default_factory=list)
    recent_commits: list[str] = field(default_factory=list)


async def capture_context_snapshot(
    focus: str,
    cwd: Path,
    commit: bool,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    now: datetime | None = None,
) -> ContextSnapshot:
    """Collect git state for ``cwd``.

    Git problems (not a repository, git not installed) leave the git fields
    empty; they do not fail the capture.

    Args:
        focus: What the snapshot is for, e.g. "pre-compact auto-save"
        cwd: Working tree to describe
        commit: Whether a commit was just made; names the snapshot after it
        timeout: Bound for each git call
        now: Capture time (defaults to the current UTC time)
    """
    now = now or datetime.now(timezone.utc)

    branch = await _git_output(["rev-parse", "--abbrev-ref", "HEAD"], cwd, timeout)
    head = await _git_output(["rev-parse", "HEAD"], cwd, timeout)
    status = await _git_output(["status", "--porcelain"], cwd, timeout)
    log = await _git_output(
        ["log", f"-{RECENT_COMMITS}", "--pretty=format:%h %s"], cwd, timeout
    )

    commit_tied = commit and bool(head)
    snapshot_id = (
        f"commit-{head[:12]}" if commit_tied else f"snap-{now.strftime('%Y%m%dT%H%M%SZ')}"
    )

    return ContextSnapshot(
        id=snapshot_id,
        focus=focus,
        created_at=now.isoformat(),
        cwd=str(cwd),
        commit_tied=commit_tied,
        branch=branch,
        head=head,
        dirty_files=[line[3:] for line in (status or "").splitlines() if line.strip()],
        recent_commits=(log or "").splitlines(),
    )


def write_context_snapshot(snapshot: ContextSnapshot, base_dir: Path) -> Path:
    """Write the snapshot to ``<base_dir>/snapshots/<id>.json``.

    Raises:
        OSError: If the directory or file cannot be written
    """
    target_dir = base_dir / SNAPSHOTS_SUBDIR
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{snapshot.id}.json"
    path.write_text(json.dumps(asdict(snapshot), indent=2), encoding="utf-8")
    return path


async def _git_output(args: list[str], cwd: Path, timeout: float) -> str | None:
    try:
        result = await run_git(args, cwd=cwd, timeout=timeout)
    except GitCommandError as e:
        logger.debug(f"Context capture: {e.message}")
        return None
    return result.stdout
