"""
Session service.

Owns the memoised list of live sessions and applies the read-time view on
top of it: day cutoff, dismissed tasks, staleness flags and session-meta
enrichment. None of these filters is stored in the memo, so a dismissal or a
different cutoff never requires re-reading the session files.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from planwatch.api.services.base import BaseService
from planwatch.api.services.memo_cache import MemoCache
from planwatch.config import LiveSettings
from planwatch.core.models import LiveSession
from planwatch.core.session_reader import read_sessions
from planwatch.core.transcript import (
    TranscriptSummary,
    find_transcript,
    summarize_transcript,
)
from planwatch.errors import SessionNotFoundError

DISMISSED_FILE = "planwatch-dismissed.json"

_META_FIELDS = {
    "lines_added": ("linesAdded", (int, float)),
    "git_commits": ("gitCommits", (int, float)),
    "languages": ("languages", dict),
    "duration_minutes": ("durationMinutes", (int, float)),
}


class SessionService(BaseService):
    """Cached live sessions plus the persisted dismissal set."""

    def __init__(self, claude_dir: Path, settings: Optional[LiveSettings] = None):
        super().__init__()
        self.claude_dir = claude_dir
        self.settings = settings or LiveSettings()
        self._cache: MemoCache[list[LiveSession]] = MemoCache(self._load, name="sessions")
        self._dismissed: set[str] = self._load_dismissed()
        self.last_change: Optional[datetime] = None

    @property
    def dismissed_path(self) -> Path:
        return self.claude_dir / DISMISSED_FILE

    @property
    def dismissed(self) -> frozenset[str]:
        return frozenset(self._dismissed)

    def has_live_data(self) -> bool:
        return (self.claude_dir / "tasks").is_dir() or (self.claude_dir / "todos").is_dir()

    def invalidate(self) -> None:
        """Drop the memoised sessions; records the time of the change."""
        self.last_change = datetime.now(timezone.utc)
        self._cache.invalidate()

    def cutoff_for(self, days: Optional[str]) -> Optional[datetime]:
        """Translate a ``days`` query value into a cutoff time.

        ``None`` means the configured default; ``"all"``, ``"0"`` and
        non-positive or unparseable values mean no cutoff.
        """
        if days in ("all", "0"):
            return None
        if days is None:
            count = self.settings.default_days
        else:
            try:
                count = int(days)
            except ValueError:
                return None
            if count <= 0:
                return None
        return datetime.now(timezone.utc) - timedelta(days=count)

    async def get_sessions(self, cutoff: Optional[datetime] = None) -> dict[str, Any]:
        """Sessions updated at or after ``cutoff`` (all when None).

        Returns:
            Dict with ``sessions`` (enriched dicts), ``total`` (before the
            cutoff) and ``filtered`` (after it)
        """
        sessions = await self._cache.read()
        selected = [s for s in sessions if cutoff is None or s.updated_at >= cutoff]
        now = datetime.now(timezone.utc)
        enriched = await asyncio.to_thread(
            lambda: [self._present(s, now) for s in selected]
        )
        return {"sessions": enriched, "total": len(sessions), "filtered": len(selected)}

    async def get_by_id(self, session_id: str) -> dict[str, Any]:
        """One enriched session.

        Raises:
            SessionNotFoundError: No session with that id
        """
        for session in await self._cache.read():
            if session.id == session_id:
                now = datetime.now(timezone.utc)
                return await asyncio.to_thread(self._present, session, now)
        raise SessionNotFoundError(
            f"Session '{session_id}' not found", details={"session_id": session_id}
        )

    async def get_context(self, session_id: str) -> TranscriptSummary:
        """Summary of the session's transcript tail.

        Raises:
            SessionNotFoundError: No transcript for that id
        """
        path = await asyncio.to_thread(find_transcript, self.claude_dir, session_id)
        if path is None:
            raise SessionNotFoundError(
                f"No transcript found for session '{session_id}'",
                details={"session_id": session_id},
            )
        return await asyncio.to_thread(summarize_transcript, path, session_id)

    async def dismiss(self, session_id: str, task_id: str) -> None:
        """Hide one task from session output, persistently."""
        self._dismissed.add(f"{session_id}/{task_id}")
        await asyncio.to_thread(self._save_dismissed)
        self.invalidate()
        self.log_operation("Dismissed task", session_id=session_id, task_id=task_id)

    async def health_check(self) -> dict[str, Any]:
        return {
            "live": self.has_live_data(),
            "lastSessions": self.last_change.isoformat() if self.last_change else None,
            "dismissed": len(self._dismissed),
        }

    # --- internals ---

    async def _load(self) -> list[LiveSession]:
        return await asyncio.to_thread(read_sessions, self.claude_dir)

    def _present(self, session: LiveSession, now: datetime) -> dict[str, Any]:
        stale = now - session.updated_at > timedelta(hours=self.settings.stale_after_hours)
        tasks = []
        for task in session.tasks:
            if f"{session.id}/{task.id}" in self._dismissed:
                continue
            data = task.to_dict()
            if stale and task.status == "in_progress":
                data["isStale"] = True
            tasks.append(data)

        data = session.to_dict()
        data["tasks"] = tasks
        data.update(self._read_meta(session.id))
        return data

    def _read_meta(self, session_id: str) -> dict[str, Any]:
        path = self.claude_dir / "usage-data" / "session-meta" / f"{session_id}.json"
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            self.logger.debug(f"Ignoring unreadable session meta {path}: {e}")
            return {}
        if not isinstance(raw, dict):
            return {}
        return {
            key: raw[source]
            for source, (key, kind) in _META_FIELDS.items()
            if isinstance(raw.get(source), kind) and not isinstance(raw.get(source), bool)
        }

    def _load_dismissed(self) -> set[str]:
        try:
            raw = json.loads(self.dismissed_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return set()
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable {self.dismissed_path}: {e}")
            return set()
        if not isinstance(raw, list):
            return set()
        return {item for item in raw if isinstance(item, str)}

    def _save_dismissed(self) -> None:
        try:
            self.dismissed_path.write_text(
                json.dumps(sorted(self._dismissed), indent=2), encoding="utf-8"
            )
        except OSError as e:
            self.logger.warning(f"Could not persist dismissed tasks to {self.dismissed_path}: {e}")
