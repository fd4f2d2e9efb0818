"""Session transcript summaries.

Transcripts live at ``<claude_dir>/projects/<project>/<session>.jsonl`` and
can grow large; only the tail of the file is read.
"""

import json
import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

TAIL_LINES = 500
PREVIEW_CHARS = 300
TOP_TOOLS = 10
_CHUNK = 64 * 1024


@dataclass(frozen=True)
class TranscriptSummary:
    """Recent activity of one session transcript."""

    session_id: str
    message_count: int
    last_user_prompt: Optional[str] = None
    last_assistant_summary: Optional[str] = None
    tool_counts: dict[str, int] = field(default_factory=dict)

    @property
    def recent_tools(self) -> list[str]:
        return [name for name, _ in Counter(self.tool_counts).most_common(TOP_TOOLS)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "messageCount": self.message_count,
            "lastUserPrompt": self.last_user_prompt,
            "lastAssistantSummary": self.last_assistant_summary,
            "toolCounts": dict(self.tool_counts),
            "recentTools": self.recent_tools,
        }


def find_transcript(claude_dir: Path, session_id: str) -> Optional[Path]:
    """Locate ``<session_id>.jsonl`` in any project directory."""
    projects = claude_dir / "projects"
    try:
        candidates = sorted(p for p in projects.iterdir() if p.is_dir())
    except OSError:
        return None
    for project in candidates:
        path = project / f"{session_id}.jsonl"
        if path.is_file():
            return path
    return None


def summarize_transcript(path: Path, session_id: str, tail_lines: int = TAIL_LINES) -> TranscriptSummary:
    """Summarize the last ``tail_lines`` lines of a transcript.

    ``message_count`` is estimated from the line density of the tail.

    Raises:
        OSError: If the file cannot be read
    """
    lines, total = tail_read(path, tail_lines)

    last_user: Optional[str] = None
    last_assistant: Optional[str] = None
    tools: Counter[str] = Counter()

    for line in lines:
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(record, dict) or not isinstance(record.get("message"), dict):
            continue
        content = record["message"].get("content")

        if record.get("type") == "user":
            text = _first_text(content)
            if text is not None:
                last_user = text[:PREVIEW_CHARS]
        elif record.get("type") == "assistant" and isinstance(content, list):
            for block in content:
                if not isinstance(block, dict):
                    continue
                if block.get("type") == "text" and isinstance(block.get("text"), str):
                    last_assistant = block["text"][:PREVIEW_CHARS]
                elif block.get("type") == "tool_use" and isinstance(block.get("name"), str):
                    tools[block["name"]] += 1

    return TranscriptSummary(
        session_id=session_id,
        message_count=total,
        last_user_prompt=last_user,
        last_assistant_summary=last_assistant,
        tool_counts=dict(tools),
    )


def tail_read(path: Path, line_count: int) -> tuple[list[str], int]:
    """Read the last ``line_count`` non-blank lines without loading the file.

    Returns:
        Tuple of (lines, estimated total line count)
    """
    with open(path, "rb") as f:
        size = f.seek(0, os.SEEK_END)
        if size == 0:
            return [], 0

        remaining = size
        newlines = 0
        cutoff = 0
        while remaining > 0 and newlines < line_count:
            read_size = min(_CHUNK, remaining)
            remaining -= read_size
            f.seek(remaining)
            chunk = f.read(read_size)
            in_chunk = chunk.count(b"\n")
            if newlines + in_chunk >= line_count:
                index = read_size
                for _ in range(line_count - newlines):
                    index = chunk.rindex(b"\n", 0, index)
                cutoff = remaining + index + 1
            newlines += in_chunk

        scanned = size - remaining
        estimated_total = round(newlines / scanned * size) if scanned else 0

        f.seek(cutoff)
        tail = f.read().decode("utf-8", errors="replace")

    lines = [line for line in tail.split("\n") if line.strip()]
    return lines, max(estimated_total, len(lines))


def _first_text(content: Any) -> Optional[str]:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
    return None
