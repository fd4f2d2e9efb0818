"""
Global test fixtures for planwatch.

Provides temporary plan and agent data directories and keeps cached settings
from leaking between tests.
"""

from pathlib import Path

import pytest

from planwatch.config import clear_settings_cache
from planwatch.logging import reset_rate_limit_state
from tests.builders import SAMPLE_QUEUE


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "api: mark a test as involving the API layer")
    config.addinivalue_line(
        "markers", "slow: tests that wait on real filesystem notifications"
    )


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep settings and log rate limiting independent between tests."""
    for name in ("PLANWATCH_PLAN_DIR", "PLANWATCH_CLAUDE_DIR", "OTLP_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    reset_rate_limit_state()
    yield
    clear_settings_cache()


@pytest.fixture
def plan_dir(tmp_path) -> Path:
    """Plan directory containing the two-task sample queue and an empty log."""
    directory = tmp_path / "project" / ".planwatch"
    directory.mkdir(parents=True)
    (directory / "queue.md").write_text(SAMPLE_QUEUE)
    (directory / "execution.log").write_text("")
    return directory


@pytest.fixture
def claude_dir(tmp_path) -> Path:
    """Empty agent data directory."""
    directory = tmp_path / "claude"
    directory.mkdir()
    return directory
