"""Configuration for planwatch."""

from planwatch.config.settings import (
    HookSettings,
    LiveSettings,
    LoggingSettings,
    PathSettings,
    ServerSettings,
    WatcherSettings,
    clear_settings_cache,
    get_hook_settings,
    get_live_settings,
    get_logging_settings,
    get_path_settings,
    get_server_settings,
    get_watcher_settings,
)

__all__ = [
    "ServerSettings",
    "PathSettings",
    "WatcherSettings",
    "LiveSettings",
    "HookSettings",
    "LoggingSettings",
    "get_server_settings",
    "get_path_settings",
    "get_watcher_settings",
    "get_live_settings",
    "get_hook_settings",
    "get_logging_settings",
    "clear_settings_cache",
]
