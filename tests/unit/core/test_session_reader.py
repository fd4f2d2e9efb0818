"""
Tests for the live session reader.
"""

import json
import os

from planwatch.core.session_reader import read_session, read_sessions
from tests.builders import write_session_task


class TestReadSessions:
    """Tests for read_sessions."""

    def test_missing_directories_read_as_empty(self, tmp_path):
        assert read_sessions(tmp_path / "does-not-exist") == []

    def test_legacy_layout(self, claude_dir):
        write_session_task(claude_dir, "s1", "10", status="completed")
        write_session_task(claude_dir, "s1", "2", status="in_progress", activeForm="Writing")
        write_session_task(claude_dir, "s1", "1", blockedBy=["2"], blocks="bad")

        sessions = read_sessions(claude_dir)

        assert len(sessions) == 1
        session = sessions[0]
        assert session.id == "s1"
        assert [t.id for t in session.tasks] == ["1", "2", "10"]
        assert session.tasks[0].blocked_by == ("2",)
        assert session.tasks[0].blocks == ()
        assert session.tasks[1].active_form == "Writing"

    def test_invalid_and_marker_files_are_skipped(self, claude_dir):
        session_dir = claude_dir / "tasks" / "s1"
        session_dir.mkdir(parents=True)
        (session_dir / ".lock").write_text("")
        (session_dir / "broken.json").write_text("{nope")
        (session_dir / "wrong.json").write_text(json.dumps({"id": "9", "status": "weird"}))
        (session_dir / "noid.json").write_text(json.dumps({"status": "pending"}))

        assert read_sessions(claude_dir) == []
        assert read_session(claude_dir / "tasks", "s1") is None

    def test_todos_layout_uses_content_and_index_ids(self, claude_dir):
        todos = claude_dir / "todos"
        todos.mkdir()
        (todos / "abc-123-agent-abc-123.json").write_text(
            json.dumps(
                [
                    {"content": "First", "status": "completed"},
                    {"content": "Second", "status": "in_progress", "activeForm": "Doing"},
                    {"content": "Bad", "status": "unknown"},
                ]
            )
        )
        (todos / "not-a-session.json").write_text("[]")

        sessions = read_sessions(claude_dir)

        assert [s.id for s in sessions] == ["abc-123"]
        tasks = sessions[0].tasks
        assert [(t.id, t.subject, t.status) for t in tasks] == [
            ("1", "First", "completed"),
            ("2", "Second", "in_progress"),
        ]

    def test_todos_layout_wins_for_duplicate_ids(self, claude_dir):
        write_session_task(claude_dir, "dup", "1", subject="legacy")
        todos = claude_dir / "todos"
        todos.mkdir()
        (todos / "dup-agent-dup.json").write_text(
            json.dumps([{"content": "current", "status": "pending"}])
        )

        sessions = read_sessions(claude_dir)

        assert len(sessions) == 1
        assert sessions[0].tasks[0].subject == "current"

    def test_sorted_by_most_recent_update(self, claude_dir):
        old = write_session_task(claude_dir, "old", "1")
        new = write_session_task(claude_dir, "new", "1")
        os.utime(old, (1_700_000_000, 1_700_000_000))
        os.utime(new, (1_800_000_000, 1_800_000_000))

        sessions = read_sessions(claude_dir)

        assert [s.id for s in sessions] == ["new", "old"]
        assert sessions[0].updated_at.timestamp() == 1_800_000_000
