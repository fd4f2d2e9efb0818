"""
Tests for the settings classes and their cached getters.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from planwatch.config import (
    HookSettings,
    PathSettings,
    WatcherSettings,
    clear_settings_cache,
    get_path_settings,
    get_watcher_settings,
)


class TestDefaults:
    def test_defaults(self):
        watcher = WatcherSettings()
        hooks = HookSettings()
        paths = PathSettings()

        assert (watcher.debounce_ms, watcher.stability_ms, watcher.poll_interval_ms) == (100, 100, 50)
        assert watcher.depth == 2
        assert hooks.ring_size == 100
        assert hooks.git_timeout_seconds == 30.0
        assert paths.plan_dir is None
        assert paths.claude_dir == Path.home() / ".claude"


class TestEnvironment:
    """Environment overrides and validation."""

    def test_paths_from_environment_are_expanded(self, monkeypatch):
        monkeypatch.setenv("PLANWATCH_PLAN_DIR", "~/work/.planwatch")
        monkeypatch.setenv("PLANWATCH_CLAUDE_DIR", "/data/agent")

        paths = PathSettings()

        assert paths.plan_dir == Path.home() / "work" / ".planwatch"
        assert paths.claude_dir == Path("/data/agent")

    def test_watcher_timing_from_environment(self, monkeypatch):
        monkeypatch.setenv("PLANWATCH_WATCHER_DEBOUNCE_MS", "250")

        assert WatcherSettings().debounce_ms == 250

    @pytest.mark.parametrize(
        "name,value",
        [
            ("PLANWATCH_WATCHER_DEBOUNCE_MS", "0"),
            ("PLANWATCH_WATCHER_STABILITY_MS", "-5"),
            ("PLANWATCH_WATCHER_POLL_INTERVAL_MS", "soon"),
        ],
    )
    def test_invalid_durations_are_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            WatcherSettings()

    def test_ring_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            HookSettings(ring_size=0)


class TestCachedGetters:
    def test_getters_cache_until_cleared(self, monkeypatch):
        first = get_watcher_settings()
        monkeypatch.setenv("PLANWATCH_WATCHER_DEPTH", "4")

        assert get_watcher_settings() is first
        assert first.depth == 2

        clear_settings_cache()
        assert get_watcher_settings().depth == 4

    def test_path_getter(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PLANWATCH_PLAN_DIR", str(tmp_path))
        clear_settings_cache()

        assert get_path_settings().plan_dir == tmp_path
