"""Async git runner.

Every git invocation is bounded by a timeout; a hung git process is killed
and reported as a GitCommandError rather than stalling the caller.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from planwatch.errors import GitCommandError
from planwatch.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class GitResult:
    """Result envelope for one git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


async def run_git(
    args: list[str],
    cwd: Path,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    check: bool = True,
) -> GitResult:
    """Run ``git <args>`` in ``cwd``.

    Args:
        args: Git arguments (without the ``git`` prefix)
        cwd: Working directory
        timeout: Seconds before the process is killed
        check: Raise on a non-zero exit code

    Returns:
        GitResult with decoded output

    Raises:
        GitCommandError: git missing, cwd missing, timeout, or non-zero exit
            when ``check`` is set
    """
    rendered = " ".join(["git", *args])
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise GitCommandError(
            f"Could not start {rendered}: {e}", details={"cwd": str(cwd)}
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise GitCommandError(
            f"{rendered} timed out after {timeout:.0f}s",
            error_code="GIT-Timeout",
            details={"cwd": str(cwd)},
        ) from e

    result = GitResult(
        args=tuple(args),
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace").rstrip(),
        stderr=stderr.decode("utf-8", errors="replace").strip(),
    )
    if check and result.returncode != 0:
        raise GitCommandError(
            f"{rendered} failed ({result.returncode}): {result.stderr or result.stdout}",
            details={"cwd": str(cwd), "returncode": result.returncode},
        )
    return result


async def commit_all(cwd: Path, message: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Stage every working-tree change and commit it.

    Returns:
        The new commit hash

    Raises:
        GitCommandError: not a repository, nothing to commit, or timeout
    """
    await run_git(["add", "-A"], cwd=cwd, timeout=timeout)
    await run_git(["commit", "-m", message], cwd=cwd, timeout=timeout)
    head = await run_git(["rev-parse", "HEAD"], cwd=cwd, timeout=timeout)
    logger.info(f"Committed working tree in {cwd} as {head.stdout[:12]}")
    return head.stdout
