"""Subprocess-based session running ``codex exec --json``."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import shlex
import tempfile
from collections import deque
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from codex_delegate.session.base import SessionRequest, SessionStartError

logger = logging.getLogger(__name__)

TERMINAL_EVENT_TYPES = frozenset({"turn.completed", "turn.failed", "error"})
STDERR_TAIL_LINES = 20
STREAM_LINE_LIMIT = 16 * 1024 * 1024
TERMINATE_GRACE_SECONDS = 2.0


def build_exec_args(request: SessionRequest, *, schema_path: Path | None = None) -> list[str]:
    """Render the ``codex exec`` argv for ``request``; the prompt goes to stdin."""

    settings = request.settings
    head = shlex.split(settings.codex_command.strip())
    if not head:
        raise SessionStartError("Codex command is empty.", transient=False)

    args = [*head, "exec", "--json", "--skip-git-repo-check"]
    if settings.model:
        args += ["--model", settings.model]
    args += ["--sandbox", settings.sandbox]
    if settings.working_dir:
        args += ["--cd", settings.working_dir]
    if settings.reasoning:
        args += ["-c", f'model_reasoning_effort="{settings.reasoning}"']
    args += ["-c", f'approval_policy="{settings.approval}"']
    args += ["-c", f"sandbox_workspace_write.network_access={str(settings.network).lower()}"]
    args += ["-c", f'web_search="{settings.web_search}"']
    if settings.override_wire_api:
        args += ["-c", 'wire_api="responses"']
    if schema_path is not None:
        args += ["--output-schema", str(schema_path)]
    args.append("-")
    return args


class CodexExecSession:
    """Run one Codex turn as a child process and stream its JSONL events."""

    def __init__(self, request: SessionRequest) -> None:
        self.request = request
        self.returncode: int | None = None

    async def events(self) -> AsyncIterator[Any]:
        """Yield parsed events from stdout.

        Closing the generator terminates the child process and removes the
        temporary schema file.
        """

        with contextlib.ExitStack() as files:
            schema_path = None
            if self.request.output_schema is not None:
                schema_path = _write_schema_file(self.request.output_schema)
                files.callback(schema_path.unlink, missing_ok=True)
            args = build_exec_args(self.request, schema_path=schema_path)
            process = await _spawn(args)
            stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
            stderr_task = asyncio.create_task(_drain_stderr(process, stderr_tail))
            try:
                await _send_prompt(process, self.request.prompt)
                terminal_seen = False
                assert process.stdout is not None
                async for raw_line in process.stdout:
                    event = _decode_line(raw_line)
                    if event is None:
                        continue
                    if isinstance(event, dict) and event.get("type") in TERMINAL_EVENT_TYPES:
                        terminal_seen = True
                    yield event

                self.returncode = await process.wait()
                await stderr_task
                if self.returncode != 0 and not terminal_seen:
                    yield _exit_error_event(self.returncode, stderr_tail)
            finally:
                await _terminate_process(process)
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task


async def _spawn(args: list[str]) -> asyncio.subprocess.Process:
    try:
        return await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LINE_LIMIT,
        )
    except FileNotFoundError as error:
        raise SessionStartError(f"Codex command not found: {args[0]}", transient=False) from error
    except OSError as error:
        raise SessionStartError(f"Codex failed to start: {error}", transient=True) from error


async def _send_prompt(process: asyncio.subprocess.Process, prompt: str) -> None:
    assert process.stdin is not None
    try:
        process.stdin.write(prompt.encode("utf-8"))
        await process.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        logger.debug("Codex closed stdin before the prompt was written.")
    finally:
        process.stdin.close()


async def _drain_stderr(process: asyncio.subprocess.Process, tail: deque[str]) -> None:
    assert process.stderr is not None
    async for raw_line in process.stderr:
        line = raw_line.decode("utf-8", errors="replace").rstrip()
        if line:
            logger.debug("codex stderr: %s", line)
            tail.append(line)


def _decode_line(raw_line: bytes) -> Any | None:
    line = raw_line.decode("utf-8", errors="replace").strip()
    if not line:
        return None
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON output line: %s", line)
        return None


def _exit_error_event(returncode: int, stderr_tail: deque[str]) -> dict[str, Any]:
    message = f"Codex exited with code {returncode}"
    if stderr_tail:
        message = f"{message}: {' '.join(stderr_tail)}"
    return {"type": "error", "message": message}


def _write_schema_file(schema: dict[str, Any]) -> Path:
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        prefix="codex-delegate-schema-",
        suffix=".json",
        delete=False,
    ) as handle:
        json.dump(schema, handle)
    return Path(handle.name)


async def _terminate_process(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE_SECONDS)
    except TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
