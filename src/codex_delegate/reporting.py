"""Post-run summaries printed after a successful delegation."""

from __future__ import annotations

import json
from typing import Any

from codex_delegate.stream.results import StreamResults


def summary_lines(results: StreamResults, *, verbose: bool, max_items: int | None) -> list[str]:
    """Render Commands/File changes/Tool calls/Web searches sections.

    Verbose runs already echoed every raw event, so nothing is rendered.
    """

    if verbose:
        return []
    sections = (
        ("Commands", results.commands),
        ("File changes", results.file_changes),
        ("Tool calls", results.tool_calls),
        ("Web searches", results.web_queries),
    )
    lines: list[str] = []
    for title, items in sections:
        if not items:
            continue
        limited = items if max_items is None else items[: max(max_items, 0)]
        lines.append(f"{title}:")
        lines.extend(f"- {item}" for item in limited)
        lines.append("")
    return lines


def final_response_lines(results: StreamResults, output_schema: dict[str, Any] | None) -> list[str]:
    if not results.final_response:
        return []
    if output_schema is not None:
        try:
            parsed = json.loads(results.final_response)
        except json.JSONDecodeError:
            pass
        else:
            return [json.dumps(parsed, indent=2, ensure_ascii=False)]
    return [results.final_response]


def report_lines(
    results: StreamResults,
    *,
    verbose: bool,
    max_items: int | None,
    output_schema: dict[str, Any] | None,
) -> list[str]:
    lines = summary_lines(results, verbose=verbose, max_items=max_items)
    lines.extend(final_response_lines(results, output_schema))
    if results.usage_summary:
        lines.append(results.usage_summary)
    return lines
