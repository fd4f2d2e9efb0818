"""
planwatch settings - runtime configuration.

Each concern gets its own settings class with an environment prefix, and a
cached getter so the values are read once per process.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """HTTP server settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=4317, gt=0, lt=65536)
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4317", "http://127.0.0.1:4317"]
    )

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_SERVER_", env_file=".env", extra="ignore"
    )


class PathSettings(BaseSettings):
    """Locations of the agent data directory and the plan directory.

    Environment variables:
        PLANWATCH_CLAUDE_DIR: Agent data directory. Default: ~/.claude
        PLANWATCH_PLAN_DIR: Directory holding queue.md and execution.log.
            Plan mode is disabled when unset.
    """

    claude_dir: Path = Field(default_factory=lambda: Path.home() / ".claude")
    plan_dir: Optional[Path] = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_", env_file=".env", extra="ignore"
    )

    @field_validator("claude_dir", "plan_dir", mode="after")
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand ``~`` so env values behave like shell paths."""
        return v.expanduser() if v is not None else None


class WatcherSettings(BaseSettings):
    """Filesystem watcher timing.

    Environment variables:
        PLANWATCH_WATCHER_DEBOUNCE_MS: Quiescence window before one coalesced
            change is emitted. Default: 100
        PLANWATCH_WATCHER_STABILITY_MS: How long a file size must stay
            unchanged before a write counts as finished. Default: 100
        PLANWATCH_WATCHER_POLL_INTERVAL_MS: Size polling interval. Default: 50
        PLANWATCH_WATCHER_DEPTH: Directory levels watched below each session
            root. Default: 2
    """

    debounce_ms: int = Field(default=100, gt=0)
    stability_ms: int = Field(default=100, gt=0)
    poll_interval_ms: int = Field(default=50, gt=0)
    depth: int = Field(default=2, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_WATCHER_", env_file=".env", extra="ignore"
    )


class LiveSettings(BaseSettings):
    """Live session streaming and presentation settings."""

    keepalive_seconds: float = Field(default=30.0, gt=0)
    stale_after_hours: float = Field(default=24.0, gt=0)
    default_days: int = Field(default=7, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_LIVE_", env_file=".env", extra="ignore"
    )


class HookSettings(BaseSettings):
    """Hook ingestion and compaction side-effect settings.

    Environment variables:
        PLANWATCH_HOOK_RING_SIZE: Hook events retained in memory. Default: 100
        PLANWATCH_HOOK_GIT_TIMEOUT_SECONDS: Upper bound for each git call made
            by the pre-compaction auto-commit. Default: 30
    """

    ring_size: int = Field(default=100, gt=0)
    git_timeout_seconds: float = Field(default=30.0, gt=0)
    commit_message: str = Field(default="chore: pre-compact auto-save [planwatch]")
    instructions_file: str = Field(default="CLAUDE.md")

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_HOOK_", env_file=".env", extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging settings."""

    level: str = Field(default="INFO")
    log_dir: Optional[Path] = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="PLANWATCH_LOGGING_", env_file=".env", extra="ignore"
    )


@lru_cache
def get_server_settings() -> ServerSettings:
    """Get server settings with caching."""
    return ServerSettings()


@lru_cache
def get_path_settings() -> PathSettings:
    """Get path settings with caching."""
    return PathSettings()


@lru_cache
def get_watcher_settings() -> WatcherSettings:
    """Get watcher settings with caching."""
    return WatcherSettings()


@lru_cache
def get_live_settings() -> LiveSettings:
    """Get live session settings with caching."""
    return LiveSettings()


@lru_cache
def get_hook_settings() -> HookSettings:
    """Get hook settings with caching."""
    return HookSettings()


@lru_cache
def get_logging_settings() -> LoggingSettings:
    """Get logging settings with caching."""
    return LoggingSettings()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_server_settings.cache_clear()
    get_path_settings.cache_clear()
    get_watcher_settings.cache_clear()
    get_live_settings.cache_clear()
    get_hook_settings.cache_clear()
    get_logging_settings.cache_clear()
