"""
API configuration module.

Bundles the per-concern settings the application factory needs so a caller
(the CLI, a test) can override any of them in one place.
"""

from pydantic import BaseModel, Field

from planwatch.config import (
    HookSettings,
    LiveSettings,
    PathSettings,
    ServerSettings,
    WatcherSettings,
    get_hook_settings,
    get_live_settings,
    get_path_settings,
    get_server_settings,
    get_watcher_settings,
)
from planwatch.version import __version__


class APIConfig(BaseModel):
    """Application configuration assembled from the settings classes."""

    title: str = Field(default="planwatch", description="API title")
    description: str = Field(
        default="Live task-plan status and agent session dashboard API",
        description="API description displayed in documentation",
    )
    version: str = Field(default=__version__, description="API version")

    server: ServerSettings = Field(default_factory=get_server_settings)
    paths: PathSettings = Field(default_factory=get_path_settings)
    watcher: WatcherSettings = Field(default_factory=get_watcher_settings)
    live: LiveSettings = Field(default_factory=get_live_settings)
    hooks: HookSettings = Field(default_factory=get_hook_settings)
