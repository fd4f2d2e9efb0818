"""
Tests for the execution log parser and writer.
"""

from datetime import datetime, timedelta, timezone

import pytest

from planwatch.core.log_parser import format_event, parse_log, parse_timestamp
from planwatch.core.models import EventStatus
from tests.builders import log_line


class TestParseLog:
    """Tests for parse_log."""

    def test_parses_valid_lines_in_order(self):
        text = log_line("A", "DONE", "2026-01-05T10:00:00Z") + log_line(
            "B",
            "FAILED",
            "2026-01-05T11:00:00Z",
            agent="worker-2",
            reason="timeout",
            meta={"duration": 42},
        )

        result = parse_log(text)

        assert result.errors == ()
        assert [e.task_id for e in result.events] == ["A", "B"]
        second = result.events[1]
        assert second.status is EventStatus.FAILED
        assert second.agent == "worker-2"
        assert second.reason == "timeout"
        assert second.meta["duration"] == 42
        assert second.timestamp == datetime(2026, 1, 5, 11, tzinfo=timezone.utc)

    def test_accepts_alternative_task_keys(self):
        text = (
            '{"task_id": "A", "status": "DONE", "timestamp": "2026-01-05T10:00:00Z"}\n'
            '{"taskId": "B", "status": "IN_PROGRESS", "timestamp": "2026-01-05T10:00:00Z"}\n'
        )

        result = parse_log(text)

        assert [e.task_id for e in result.events] == ["A", "B"]
        assert result.events[0].agent == "unknown"

    def test_bad_lines_are_skipped_with_line_numbers(self):
        text = (
            log_line("A", "DONE", "2026-01-05T10:00:00Z")
            + "\n"
            + "{not json\n"
            + "[1, 2]\n"
            + '{"status": "DONE", "timestamp": "2026-01-05T10:00:00Z"}\n'
            + log_line("A", "PAUSED", "2026-01-05T10:00:00Z")
            + '{"task": "A", "status": "DONE"}\n'
            + log_line("A", "DONE", "yesterday")
            + '{"task": "A", "status": "DONE", "timestamp": "2026-01-05T10:00:00Z'
        )

        result = parse_log(text)

        assert len(result.events) == 1
        assert len(result.errors) == 7
        assert result.errors[0].startswith("Line 3: invalid JSON")
        assert result.errors[1] == "Line 4: expected a JSON object"
        assert result.errors[2] == "Line 5: missing task id"
        assert result.errors[3] == "Line 6: unknown status 'PAUSED'"
        assert result.errors[4] == "Line 7: missing timestamp"
        assert result.errors[5] == "Line 8: invalid timestamp 'yesterday'"
        assert result.errors[6].startswith("Line 9: invalid JSON")

    def test_unhashable_status_is_an_error_not_a_crash(self):
        result = parse_log('{"task": "A", "status": ["DONE"], "timestamp": "2026-01-05T10:00:00Z"}\n')

        assert result.events == ()
        assert "unknown status" in result.errors[0]


class TestTimestamps:
    """Tests for timestamp handling."""

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2026-01-05T10:00:00") == datetime(
            2026, 1, 5, 10, tzinfo=timezone.utc
        )

    def test_offset_is_preserved(self):
        parsed = parse_timestamp("2026-01-05T12:00:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a date")


class TestFormatEvent:
    """Tests for format_event."""

    def test_written_line_parses_back(self):
        line = format_event(
            "A",
            EventStatus.BLOCKED,
            datetime(2026, 1, 5, 10, tzinfo=timezone.utc),
            "planwatch",
            reason="Status set to BLOCKED via dashboard",
        )

        assert line.endswith("\n")
        assert '"timestamp": "2026-01-05T10:00:00Z"' in line
        event = parse_log(line).events[0]
        assert event.task_id == "A"
        assert event.status is EventStatus.BLOCKED
        assert event.reason == "Status set to BLOCKED via dashboard"

    def test_optional_fields_are_omitted(self):
        line = format_event(
            "A", EventStatus.DONE, datetime(2026, 1, 5, tzinfo=timezone.utc), "me"
        )

        assert "reason" not in line
        assert "meta" not in line
