"""
Hook service.

Receives lifecycle signals from the agent's hook wiring, keeps the most
recent ones in a ring buffer, and runs the context-compaction side effects:

PreCompact
    1. ``auto_commit``: stage and commit the working tree, only when
       ``autoCommit`` is true in ``<plan_dir>/config.json``
    2. ``context_snapshot``: record branch/head/dirty files, named after the
       new commit when one was made
    3. ``compact_state``: save counts and READY tasks of the current snapshot
       to ``<plan_dir>/compact-state.json``

PostCompact
    1. ``restore_note``: append a pointer to the saved state to the
       instructions file in the plan directory

Every step is best effort. Its outcome is a StepResult; a failing step never
stops the next one and never reaches the hook sender.
"""

import asyncio
import json
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional

from planwatch import telemetry
from planwatch.api.services.base import BaseService
from planwatch.api.services.plan_service import PlanService
from planwatch.config import HookSettings
from planwatch.core.context_capture import (
    capture_context_snapshot,
    write_context_snapshot,
)
from planwatch.core.models import CompactState, HookEvent
from planwatch.core.vcs import commit_all
from planwatch.errors import GitCommandError

PRE_COMPACT = "PreCompact"
POST_COMPACT = "PostCompact"
COMPACT_STATE_FILE = "compact-state.json"
CONFIG_FILE = "config.json"
SNAPSHOT_FOCUS = "pre-compact auto-save"

_NORMALIZED_KEYS = {"type", "event", "tool", "session", "cwd", "receivedAt"}
_HOOK_MARKERS = ("planwatch", "/hook")

StepOutcome = Literal["succeeded", "failed", "skipped"]


@dataclass(frozen=True)
class StepResult:
    """Outcome of one side-effect step."""

    step: str
    outcome: StepOutcome
    detail: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"step": self.step, "outcome": self.outcome, "detail": self.detail}


class HookService(BaseService):
    """Hook event ring buffer and compaction side effects."""

    def __init__(
        self,
        claude_dir: Path,
        plan_service: PlanService,
        settings: Optional[HookSettings] = None,
    ):
        super().__init__()
        self.claude_dir = claude_dir
        self.plan_service = plan_service
        self.settings = settings or HookSettings()
        self._events: deque[HookEvent] = deque(maxlen=self.settings.ring_size)

    @property
    def plan_dir(self) -> Optional[Path]:
        return self.plan_service.plan_dir

    # --- ingestion ---

    def push(self, body: Mapping[str, Any]) -> HookEvent:
        """Normalize a raw hook body, stamp it and store it. Never raises."""
        event = body.get("event")
        hook_event = HookEvent(
            event=event if isinstance(event, str) and event else "unknown",
            received_at=datetime.now(timezone.utc),
            tool=_optional_str(body.get("tool")),
            session=_optional_str(body.get("session")),
            cwd=_optional_str(body.get("cwd")),
            extra=MappingProxyType(
                {k: v for k, v in body.items() if k not in _NORMALIZED_KEYS}
            ),
        )
        self._events.append(hook_event)
        telemetry.hook_events_counter.add(1, {"event": hook_event.event})
        return hook_event

    def get_events(self) -> list[HookEvent]:
        """Retained hook events, newest first."""
        return list(reversed(self._events))

    def get_auto_commit(self) -> bool:
        """Whether ``autoCommit`` is true in the plan's config.json."""
        if self.plan_dir is None:
            return False
        config = _read_json(self.plan_dir / CONFIG_FILE)
        return isinstance(config, dict) and config.get("autoCommit") is True

    def get_hooks_installed(self) -> bool:
        """Whether settings.json wires a PostToolUse or Stop hook to this server."""
        settings = _read_json(self.claude_dir / "settings.json")
        if not isinstance(settings, dict) or not isinstance(settings.get("hooks"), dict):
            return False
        hooks = settings["hooks"]

        def wired(key: str) -> bool:
            entries = hooks.get(key)
            if not isinstance(entries, list):
                return False
            for entry in entries:
                if isinstance(entry, dict):
                    text = json.dumps(entry)
                    if any(marker in text for marker in _HOOK_MARKERS):
                        return True
            return False

        return wired("PostToolUse") or wired("Stop")

    # --- side effects ---

    async def handle(self, hook_event: HookEvent) -> list[StepResult]:
        """Run the side effects for ``hook_event``; other events yield []."""
        if hook_event.event == PRE_COMPACT:
            results = await self.handle_pre_compact(hook_event)
        elif hook_event.event == POST_COMPACT:
            results = await self.handle_post_compact(hook_event)
        else:
            return []
        self._log_results(hook_event, results)
        return results

    async def handle_pre_compact(self, hook_event: HookEvent) -> list[StepResult]:
        cwd = self._resolve_cwd(hook_event)
        results = []

        commit_hash: Optional[str] = None
        if not self.get_auto_commit():
            results.append(StepResult("auto_commit", "skipped", "auto-commit disabled"))
        else:
            try:
                commit_hash = await commit_all(
                    cwd,
                    self.settings.commit_message,
                    timeout=self.settings.git_timeout_seconds,
                )
                results.append(StepResult("auto_commit", "succeeded", commit_hash))
            except GitCommandError as e:
                results.append(StepResult("auto_commit", "failed", e.message))

        results.append(await self._write_context_snapshot(cwd, commit_hash is not None))
        results.append(await self._write_compact_state(hook_event))
        return results

    async def handle_post_compact(self, hook_event: HookEvent) -> list[StepResult]:
        if self.plan_dir is None:
            return [StepResult("restore_note", "skipped", "no plan configured")]
        state_path = self.plan_dir / COMPACT_STATE_FILE
        state = _read_json(state_path)
        if state is None:
            return [StepResult("restore_note", "skipped", f"no {COMPACT_STATE_FILE}")]

        summary = state.get("summary") if isinstance(state, dict) else None
        summary = summary if isinstance(summary, dict) else {}
        note = (
            f"\n\n> **[compact-restore {hook_event.received_at.isoformat()}]** "
            f"Context was compacted. State: {summary.get('done', 0)} DONE, "
            f"{summary.get('ready', 0)} READY. "
            f"Read `{self.plan_dir.name}/{COMPACT_STATE_FILE}` for full task list.\n"
        )
        target = self.plan_dir / self.settings.instructions_file
        try:
            await asyncio.to_thread(_append_text, target, note)
        except OSError as e:
            return [StepResult("restore_note", "failed", str(e))]
        return [StepResult("restore_note", "succeeded", str(target))]

    async def health_check(self) -> dict[str, Any]:
        return {
            "bufferedEvents": len(self._events),
            "autoCommit": self.get_auto_commit(),
            "hooksInstalled": self.get_hooks_installed(),
        }

    # --- internals ---

    def _resolve_cwd(self, hook_event: HookEvent) -> Path:
        if hook_event.cwd:
            return Path(hook_event.cwd)
        if self.plan_dir is not None:
            return self.plan_dir.parent
        return Path.cwd()

    async def _write_context_snapshot(self, cwd: Path, committed: bool) -> StepResult:
        base_dir = self.plan_dir if self.plan_dir is not None else cwd / ".planwatch"
        try:
            snapshot = await capture_context_snapshot(
                SNAPSHOT_FOCUS,
                cwd,
                commit=committed,
                timeout=self.settings.git_timeout_seconds,
            )
            path = await asyncio.to_thread(write_context_snapshot, snapshot, base_dir)
        except Exception as e:
            return StepResult("context_snapshot", "failed", str(e))
        return StepResult("context_snapshot", "succeeded", str(path))

    async def _write_compact_state(self, hook_event: HookEvent) -> StepResult:
        if self.plan_dir is None:
            return StepResult("compact_state", "skipped", "no plan configured")
        if not self.plan_service.has_queue():
            return StepResult("compact_state", "skipped", "no queue file")

        path = self.plan_dir / COMPACT_STATE_FILE
        try:
            view = await self.plan_service.read()
            if view.snapshot is None:
                return StepResult("compact_state", "skipped", "no snapshot")
            state = CompactState(
                compacted_at=hook_event.received_at.isoformat(),
                session_id=hook_event.session,
                summary=view.snapshot.summary,
                ready_tasks=tuple(view.snapshot.ready_task_ids()),
            )
            await asyncio.to_thread(
                path.write_text, json.dumps(state.to_dict(), indent=2), "utf-8"
            )
        except Exception as e:
            return StepResult("compact_state", "failed", str(e))
        return StepResult("compact_state", "succeeded", str(path))

    def _log_results(self, hook_event: HookEvent, results: list[StepResult]) -> None:
        for result in results:
            if result.outcome == "failed":
                telemetry.hook_step_failures_counter.add(1, {"step": result.step})
                self.logger.warning(f"{hook_event.event} step {result.step} failed: {result.detail}")
            else:
                self.logger.info(
                    f"{hook_event.event} step {result.step} {result.outcome}"
                    + (f": {result.detail}" if result.detail else "")
                )


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _read_json(path: Path) -> Any:
    """Parsed JSON content, or None when missing or malformed."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


def _append_text(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)
