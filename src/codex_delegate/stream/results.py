"""Accumulated results extracted from a Codex event stream."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class StreamResults:
    """Mutable accumulator owned by the stream coordinator for one run."""

    commands: list[str] = field(default_factory=list)
    file_changes: list[str] = field(default_factory=list)
    tool_calls: list[str] = field(default_factory=list)
    web_queries: list[str] = field(default_factory=list)
    final_response: str = ""
    usage_summary: str = ""
