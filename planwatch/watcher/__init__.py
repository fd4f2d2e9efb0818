"""Filesystem change detection."""

from planwatch.watcher.channel import ChangeChannel, WatchEvent, WatchEventType
from planwatch.watcher.file_watcher import FileWatcher

__all__ = ["ChangeChannel", "FileWatcher", "WatchEvent", "WatchEventType"]
