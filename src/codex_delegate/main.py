"""CLI entrypoint for codex-delegate."""

import logging

import rich_click as click

from codex_delegate import __version__
from codex_delegate.config import (
    APPROVAL_POLICIES,
    REASONING_LEVELS,
    SANDBOX_MODES,
    WEB_SEARCH_MODES,
    OptionsError,
)
from codex_delegate.controllers import (
    DelegateCliController,
    DelegateInitCommand,
    DelegateRolesCommand,
    DelegateRunCommand,
)
from codex_delegate.schema import SchemaError
from codex_delegate.session import SessionStartError
from codex_delegate.stream import DelegateStreamError

click.rich_click.USE_MARKDOWN = True
DELEGATE_CONTROLLER = DelegateCliController()
DELEGATE_ERRORS = (OptionsError, SchemaError, SessionStartError, DelegateStreamError)


@click.group()
@click.version_option(version=__version__, prog_name="codex-delegate")
def codex_delegate() -> None:
    """Delegate a task to a Codex sub-agent and stream its progress."""


@codex_delegate.command("run")
@click.option("--role", default="implementation", show_default=True, help="Role template to use.")
@click.option("--task", default=None, help="Task for the sub-agent. **Required.**")
@click.option("--instructions", default="", help="Extra instructions added before the task.")
@click.option("--model", default=None, help="Codex model override.")
@click.option("--reasoning", default=None, help=f"Reasoning effort: {', '.join(REASONING_LEVELS)}.")
@click.option("--working-dir", default=None, help="Working directory for the sub-agent.")
@click.option("--sandbox", default=None, help=f"Sandbox mode: {', '.join(SANDBOX_MODES)}.")
@click.option("--approval", default=None, help=f"Approval policy: {', '.join(APPROVAL_POLICIES)}.")
@click.option("--network/--no-network", default=None, help="Allow network access in the sandbox.")
@click.option("--web-search", default=None, help=f"Web search mode: {', '.join(WEB_SEARCH_MODES)}.")
@click.option(
    "--verbose/--no-verbose",
    default=None,
    help="Echo raw events and log them to a file.",
)
@click.option("--structured/--no-structured", default=None, help="Request the default JSON schema.")
@click.option("--schema-file", default=None, help="JSON schema file for structured output.")
@click.option("--log-file", default=None, help="Event log file inside the project directory.")
@click.option(
    "--max-items",
    type=click.IntRange(min=0),
    default=None,
    help="Max items per summary section.",
)
@click.option(
    "--timeout-minutes",
    type=float,
    default=None,
    help="Overall run timeout in minutes (default 10).",
)
def run(  # noqa: PLR0913
    role: str,
    task: str | None,
    instructions: str,
    model: str | None,
    reasoning: str | None,
    working_dir: str | None,
    sandbox: str | None,
    approval: str | None,
    network: bool | None,
    web_search: str | None,
    verbose: bool | None,
    structured: bool | None,
    schema_file: str | None,
    log_file: str | None,
    max_items: int | None,
    timeout_minutes: float | None,
) -> None:
    """Run one delegated Codex task.

    Options not given on the command line come from
    `.codex/codex-delegate-config.json` and `CODEX_DELEGATE_*` variables.
    """

    _configure_logging(verbose=bool(verbose))
    try:
        lines = DELEGATE_CONTROLLER.run(
            DelegateRunCommand(
                task=task,
                role=role,
                instructions=instructions,
                overrides={
                    "model": model,
                    "reasoning": reasoning,
                    "working_dir": working_dir,
                    "sandbox": sandbox,
                    "approval": approval,
                    "network": network,
                    "web_search": web_search,
                    "verbose": verbose,
                    "structured": structured,
                    "schema_file": schema_file,
                    "log_file": log_file,
                    "max_items": max_items,
                    "timeout_minutes": timeout_minutes,
                },
            ),
        )
    except DELEGATE_ERRORS as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@codex_delegate.command("init")
def init() -> None:
    """Create `.codex/codex-delegate-config.json` with defaults when missing."""

    try:
        lines = DELEGATE_CONTROLLER.init(DelegateInitCommand())
    except OSError as error:
        raise click.ClickException(f"Failed to create config: {error}") from error
    _emit_lines(lines)


@codex_delegate.command("roles")
def roles() -> None:
    """List roles from `.codex/*.md` and `.github/agents/*.agent.md`."""

    _configure_logging(verbose=False)
    _emit_lines(DELEGATE_CONTROLLER.roles(DelegateRolesCommand()))


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    codex_delegate()
