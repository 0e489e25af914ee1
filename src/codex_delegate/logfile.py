"""Raw event log file helpers and the periodic progress tail."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from codex_delegate.stream.sinks import TextSink

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_SECONDS = 60.0
PROGRESS_TAIL_LINES = 5
PROGRESS_HEADER = f"Sub-agent progress (last {PROGRESS_TAIL_LINES} log lines):"


class FileSink:
    """Append-mode text sink over the event log file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle = path.open("a", encoding="utf-8")

    def write(self, text: str, /) -> int:
        written = self._handle.write(text)
        self._handle.flush()
        return written

    def close(self) -> None:
        self._handle.close()


def tail_log_file(path: Path, line_count: int, *, project_dir: Path | None = None) -> list[str]:
    """Return the last ``line_count`` lines of the log; [] when missing or empty."""

    root = (project_dir or Path.cwd()).resolve()
    resolved = path.resolve()
    if not resolved.is_relative_to(root):
        return []
    try:
        content = resolved.read_text("utf-8").strip()
    except FileNotFoundError:
        return []
    if not content or line_count <= 0:
        return []
    return content.split("\n")[-line_count:]


async def report_progress(
    path: Path,
    output: TextSink,
    *,
    interval_seconds: float = PROGRESS_INTERVAL_SECONDS,
    project_dir: Path | None = None,
) -> None:
    """Print the log tail every ``interval_seconds`` until cancelled."""

    while True:
        await asyncio.sleep(interval_seconds)
        tail = tail_log_file(path, PROGRESS_TAIL_LINES, project_dir=project_dir)
        if not tail:
            continue
        logger.debug("Reporting %d progress lines from %s", len(tail), path)
        output.write("\n".join(["", PROGRESS_HEADER, *tail]) + "\n")
