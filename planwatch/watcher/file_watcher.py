"""
Filesystem watcher.

Watches the agent data directory and the plan directory with a watchdog
observer and turns bursts of raw filesystem events into single, typed
change notifications on a ChangeChannel.

Roots:
    <claude_dir>/tasks, <claude_dir>/todos   session files, recursive up to
                                             ``depth`` levels
    <plan_dir>                               only queue.md and execution.log
    <claude_dir>                             up to ``depth`` levels; other agent
                                             data (session metadata, transcripts)
                                             counts as ``sessions``, and tasks/ or
                                             todos/ created after start get
                                             scheduled

Raw events arrive on the observer thread and are handed to the event loop
with ``call_soon_threadsafe``; all watcher state is touched only on the loop.
"""

import asyncio
from pathlib import Path
from typing import Literal, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from planwatch import telemetry
from planwatch.config import WatcherSettings
from planwatch.logging import get_logger, should_rate_limit_log
from planwatch.watcher.channel import ChangeChannel, WatchEvent, WatchEventType

logger = get_logger(__name__)

PLAN_FILES = frozenset({"queue.md", "execution.log"})
SESSION_DIRS = ("tasks", "todos")

Role = Literal["sessions", "plan", "claude"]


class _LoopBridgeHandler(FileSystemEventHandler):
    """Forward raw watchdog events to the watcher on its event loop."""

    def __init__(self, watcher: "FileWatcher", role: Role, root: Path):
        super().__init__()
        self._watcher = watcher
        self._role = role
        self._root = root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed", "closed_no_write"):
            return
        dest = getattr(event, "dest_path", "") or ""
        try:
            self._watcher.loop.call_soon_threadsafe(
                self._watcher.handle_raw_event,
                self._role,
                self._root,
                event.event_type,
                _decode(event.src_path),
                _decode(dest),
                event.is_directory,
            )
        except RuntimeError:
            # Loop already closed during shutdown
            pass


class FileWatcher:
    """Debounced, write-stable change detection for sessions and plan files."""

    def __init__(
        self,
        claude_dir: Path,
        plan_dir: Optional[Path],
        channel: ChangeChannel,
        settings: Optional[WatcherSettings] = None,
    ):
        self.claude_dir = claude_dir
        self.plan_dir = plan_dir
        self.channel = channel
        self.settings = settings or WatcherSettings()

        self.loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None
        self._scheduled: set[Path] = set()
        self._running = False

        self._pending: WatchEventType | None = None
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._stability_tasks: dict[Path, asyncio.Task] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def watched_roots(self) -> set[Path]:
        return set(self._scheduled)

    def start(self) -> None:
        """Schedule every existing root and start the observer.

        Must be called from the event loop thread. Never raises: with no
        existing root the watcher stays a no-op for the life of the process.
        """
        if self._running:
            return
        self.loop = asyncio.get_running_loop()

        roots: list[tuple[Role, Path, bool]] = []
        for name in SESSION_DIRS:
            roots.append(("sessions", self.claude_dir / name, True))
        if self.plan_dir is not None:
            roots.append(("plan", self.plan_dir, False))
        roots.append(("claude", self.claude_dir, True))

        existing = [(role, path, rec) for role, path, rec in roots if path.is_dir()]
        if not existing:
            logger.info(
                f"No watch roots exist under {self.claude_dir}"
                + (f" or {self.plan_dir}" if self.plan_dir else "")
                + "; file watching disabled"
            )
            return

        try:
            self._observer = Observer()
            for role, path, recursive in existing:
                self._schedule(role, path, recursive)
            self._observer.start()
        except Exception as e:
            logger.error(f"Failed to start file watcher: {e}")
            self._observer = None
            self._scheduled.clear()
            return

        self._running = True
        logger.info(f"Watching {len(self._scheduled)} root(s): {sorted(map(str, self._scheduled))}")

    async def stop(self) -> None:
        """Stop the observer and drop pending work. Never raises."""
        if not self._running:
            return
        self._running = False

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._pending = None

        for task in list(self._stability_tasks.values()):
            task.cancel()
        self._stability_tasks.clear()

        observer, self._observer = self._observer, None
        if observer is not None:
            try:
                observer.stop()
                await asyncio.to_thread(observer.join, 5.0)
            except Exception as e:
                logger.warning(f"Error stopping file watcher: {e}")
        self._scheduled.clear()
        logger.info("File watcher stopped")

    def handle_raw_event(
        self,
        role: Role,
        root: Path,
        event_type: str,
        src_path: str,
        dest_path: str,
        is_directory: bool,
    ) -> None:
        """Filter and classify one raw event (runs on the loop thread)."""
        if not self._running:
            return

        path = Path(dest_path) if event_type == "moved" and dest_path else Path(src_path)

        if role == "claude":
            self._on_claude_dir_event(event_type, path, is_directory)
            if is_directory or not self._is_other_agent_data(path):
                return
            kind: WatchEventType = "sessions"
        elif role == "plan":
            if path.name not in PLAN_FILES or path.parent != root:
                return
            kind = "plan"
        else:
            if not self._within_depth(root, path):
                return
            kind = "sessions"

        if is_directory:
            if event_type in ("created", "deleted", "moved"):
                self._mark_changed(kind)
            return

        if event_type == "deleted":
            self._mark_changed(kind)
        else:
            self._await_stable(path, kind)

    # --- internals ---

    def _schedule(self, role: Role, path: Path, recursive: bool) -> None:
        handler = _LoopBridgeHandler(self, role, path)
        self._observer.schedule(handler, str(path), recursive=recursive)
        self._scheduled.add(path)
        logger.debug(f"Scheduled {role} root {path} (recursive={recursive})")

    def _on_claude_dir_event(self, event_type: str, path: Path, is_directory: bool) -> None:
        if not is_directory or event_type not in ("created", "moved"):
            return
        if path.parent != self.claude_dir or path.name not in SESSION_DIRS:
            return
        if path in self._scheduled or self._observer is None:
            return
        try:
            self._schedule("sessions", path, True)
        except Exception as e:
            logger.error(f"Failed to watch late-created {path}: {e}")
            return
        logger.info(f"Session directory {path} appeared; now watching it")
        self._mark_changed("sessions")

    def _is_other_agent_data(self, path: Path) -> bool:
        # tasks/ and todos/ are reported by their own roots
        if not self._within_depth(self.claude_dir, path):
            return False
        if path.relative_to(self.claude_dir).parts[0] in SESSION_DIRS:
            return False
        if self.plan_dir is not None and path.is_relative_to(self.plan_dir):
            return False
        return True

    def _within_depth(self, root: Path, path: Path) -> bool:
        try:
            relative = path.relative_to(root)
        except ValueError:
            return False
        return 0 < len(relative.parts) <= self.settings.depth

    def _await_stable(self, path: Path, kind: WatchEventType) -> None:
        if path in self._stability_tasks:
            return
        task = self.loop.create_task(self._wait_for_stable_size(path, kind))
        self._stability_tasks[path] = task

    async def _wait_for_stable_size(self, path: Path, kind: WatchEventType) -> None:
        poll = self.settings.poll_interval_ms / 1000
        window = self.settings.stability_ms / 1000
        try:
            last = _file_size(path)
            stable_for = 0.0
            while last is not None and stable_for < window:
                await asyncio.sleep(poll)
                size = _file_size(path)
                if size is None:
                    break
                if size == last:
                    stable_for += poll
                else:
                    last = size
                    stable_for = 0.0
            self._mark_changed(kind)
        finally:
            self._stability_tasks.pop(path, None)

    def _mark_changed(self, kind: WatchEventType) -> None:
        if not self._running:
            return
        if self._pending is None or self._pending == kind:
            self._pending = kind
        else:
            self._pending = "sessions"

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self.loop.call_later(
            self.settings.debounce_ms / 1000, self._flush
        )

    def _flush(self) -> None:
        self._debounce_handle = None
        kind, self._pending = self._pending, None
        if kind is None or not self._running:
            return
        event = WatchEvent.now(kind)
        if should_rate_limit_log(f"watch_event_{kind}", limit_seconds=5):
            logger.debug(f"Emitting {kind} change")
        telemetry.watch_events_counter.add(1, {"type": kind})
        self.channel.publish(event)


def _file_size(path: Path) -> int | None:
    try:
        return path.stat().st_size
    except OSError:
        return None


def _decode(path: str | bytes) -> str:
    return path.decode() if isinstance(path, bytes) else path
