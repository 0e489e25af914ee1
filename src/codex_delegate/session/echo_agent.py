"""Local fake of ``codex exec --json`` for session and CLI integration tests."""

from __future__ import annotations

import argparse
import json
import os
import sys
import time

SCENARIO_ENV = "CODEX_DELEGATE_ECHO_SCENARIO"


def main(argv: list[str] | None = None) -> int:
    """Emit a deterministic JSONL event script chosen by ``CODEX_DELEGATE_ECHO_SCENARIO``."""

    parser = argparse.ArgumentParser()
    parser.add_argument("command", choices=["exec"])
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--skip-git-repo-check", action="store_true")
    parser.add_argument("--model")
    parser.add_argument("--sandbox")
    parser.add_argument("--cd")
    parser.add_argument("-c", "--config", action="append", default=[])
    parser.add_argument("--output-schema")
    parser.add_argument("prompt", nargs="?")
    args = parser.parse_args(argv)

    prompt = sys.stdin.read() if args.prompt in (None, "-") else args.prompt
    scenario = os.getenv(SCENARIO_ENV, "success")

    print("echo agent starting", flush=True)
    _emit({"type": "thread.started", "thread_id": "echo-thread"})
    _emit({"type": "turn.started"})

    if scenario == "turn_failed":
        _emit({"type": "turn.failed", "error": {"message": "echo agent turn failed"}})
        return 1
    if scenario == "exit_nonzero":
        print("echo agent crashed", file=sys.stderr, flush=True)
        return 3
    if scenario == "hang":
        time.sleep(3600)
        return 0

    _emit_item({"id": "1", "type": "command_execution", "command": "ls -la", "status": "completed"})
    _emit_item(
        {
            "id": "2",
            "type": "file_change",
            "changes": [{"kind": "update", "path": "README.md"}],
            "status": "completed",
        },
    )
    _emit_item({"id": "3", "type": "mcp_tool_call", "server": "docs", "tool": "search"})
    _emit_item({"id": "4", "type": "web_search", "query": "codex exec json"})
    final_text = _final_text(prompt, args.output_schema)
    _emit_item({"id": "5", "type": "agent_message", "text": final_text})
    _emit({"type": "turn.completed", "usage": {"input_tokens": 12, "output_tokens": 34}})
    return 0


def _final_text(prompt: str, output_schema: str | None) -> str:
    last_line = prompt.strip().splitlines()[-1] if prompt.strip() else ""
    if output_schema is None:
        return f"Echo: {last_line}"
    return json.dumps(
        {
            "summary": f"Echo: {last_line}",
            "status": "ok",
            "risks": [],
            "actions": [],
            "nextSteps": [],
        },
    )


def _emit_item(item: dict[str, object]) -> None:
    _emit({"type": "item.completed", "item": item})


def _emit(event: dict[str, object]) -> None:
    print(json.dumps(event), flush=True)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
