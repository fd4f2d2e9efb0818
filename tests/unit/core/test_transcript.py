"""
Tests for session transcript summaries.
"""

import json

from planwatch.core.transcript import find_transcript, summarize_transcript, tail_read


def write_transcript(path, records):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(r) + "\n" for r in records))
    return path


class TestTranscript:
    def test_find_transcript_searches_projects(self, claude_dir):
        path = write_transcript(claude_dir / "projects" / "-repo" / "s1.jsonl", [])

        assert find_transcript(claude_dir, "s1") == path
        assert find_transcript(claude_dir, "s2") is None

    def test_summary_of_recent_activity(self, tmp_path):
        path = write_transcript(
            tmp_path / "s1.jsonl",
            [
                {"type": "user", "message": {"content": "first prompt"}},
                {
                    "type": "assistant",
                    "message": {
                        "content": [
                            {"type": "text", "text": "Reading files"},
                            {"type": "tool_use", "name": "Read"},
                            {"type": "tool_use", "name": "Read"},
                            {"type": "tool_use", "name": "Bash"},
                        ]
                    },
                },
                {"type": "user", "message": {"content": [{"type": "text", "text": "x" * 400}]}},
            ],
        )

        summary = summarize_transcript(path, "s1")

        assert summary.message_count == 3
        assert summary.last_user_prompt == "x" * 300
        assert summary.last_assistant_summary == "Reading files"
        assert summary.tool_counts == {"Read": 2, "Bash": 1}
        assert summary.to_dict()["recentTools"] == ["Read", "Bash"]

    def test_tail_read_returns_last_lines(self, tmp_path):
        path = tmp_path / "log.jsonl"
        path.write_text("".join(f"line {i}\n" for i in range(50)))

        lines, total = tail_read(path, 11)

        assert lines == [f"line {i}" for i in range(40, 50)]
        assert total == 50

    def test_tail_read_empty_file(self, tmp_path):
        path = tmp_path / "empty.jsonl"
        path.write_text("")

        assert tail_read(path, 10) == ([], 0)
