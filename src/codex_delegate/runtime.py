"""End-to-end execution of one delegated run."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from codex_delegate.config import DelegateOptions, OptionsError, resolve_log_path, validate_options
from codex_delegate.logfile import PROGRESS_INTERVAL_SECONDS, FileSink, report_progress
from codex_delegate.prompts import build_prompt, list_roles, resolve_template
from codex_delegate.schema import resolve_output_schema
from codex_delegate.session import AgentSession, CodexExecSession, SessionRequest
from codex_delegate.stream.processor import StreamOptions, process_stream
from codex_delegate.stream.results import StreamResults
from codex_delegate.stream.sinks import ConsoleSink, TextSink

logger = logging.getLogger(__name__)

SessionFactory = Callable[[SessionRequest], AgentSession]


@dataclass(slots=True)
class DelegationOutcome:
    results: StreamResults
    output_schema: dict[str, Any] | None


@dataclass(slots=True)
class PreparedDelegation:
    """Validated inputs for one run, resolved before any process is started."""

    request: SessionRequest
    log_path: Path | None


def prepare_delegation(
    options: DelegateOptions,
    *,
    project_dir: Path | None = None,
) -> PreparedDelegation:
    """Validate options, check the role and compose the prompt."""

    if not options.task.strip():
        raise OptionsError("Missing required --task value.")
    settings = options.settings
    validate_options(settings)
    output_schema = resolve_output_schema(
        settings.schema_file,
        structured=settings.structured,
        project_dir=project_dir,
    )

    roles = list_roles(project_dir)
    role_ids = [role.id for role in roles]
    if roles and options.role not in role_ids:
        raise OptionsError(
            f'Unknown --role "{options.role}". Available roles: {", ".join(role_ids)}.',
        )
    if not roles:
        logger.warning("No roles available, running %r without a role template.", options.role)

    template = resolve_template(options.role, project_dir)
    prompt = build_prompt(
        template=template.prompt if template is not None else "",
        instructions=options.instructions,
        task=options.task,
    )
    return PreparedDelegation(
        request=SessionRequest(prompt=prompt, settings=settings, output_schema=output_schema),
        log_path=resolve_log_path(settings, project_dir),
    )


async def run_delegation(
    options: DelegateOptions,
    *,
    project_dir: Path | None = None,
    output: TextSink | None = None,
    session_factory: SessionFactory = CodexExecSession,
    progress_interval_seconds: float = PROGRESS_INTERVAL_SECONDS,
) -> DelegationOutcome:
    """Run the delegated task and return the accumulated results.

    The event log file and the progress reporter live exactly as long as the
    stream; both are released whether the run succeeds or fails.
    """

    prepared = prepare_delegation(options, project_dir=project_dir)
    settings = options.settings
    sink = output if output is not None else ConsoleSink()
    session = session_factory(prepared.request)

    async with contextlib.AsyncExitStack() as stack:
        log_sink: FileSink | None = None
        if prepared.log_path is not None:
            log_sink = FileSink(prepared.log_path)
            stack.callback(log_sink.close)
            progress = asyncio.create_task(
                report_progress(
                    prepared.log_path,
                    sink,
                    interval_seconds=progress_interval_seconds,
                    project_dir=project_dir,
                ),
            )
            stack.push_async_callback(_cancel_task, progress)

        logger.info("Delegating role %r to Codex", options.role)
        results = await process_stream(
            session.events(),
            StreamOptions(verbose=settings.verbose, timeout_minutes=settings.timeout_minutes),
            log_sink,
            settings.timeout_seconds,
            output=sink,
        )
    return DelegationOutcome(results=results, output_schema=prepared.request.output_schema)


async def _cancel_task(task: asyncio.Task[None]) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
