"""Controllers for codex-delegate CLI commands."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from codex_delegate.config import (
    DelegateOptions,
    DelegateSettings,
    OptionsError,
    config_path,
    ensure_config,
)
from codex_delegate.prompts import list_roles, render_role_lines
from codex_delegate.reporting import report_lines
from codex_delegate.runtime import SessionFactory, run_delegation
from codex_delegate.session import CodexExecSession


@dataclass(slots=True)
class DelegateRunCommand:
    """CLI input for one delegated run; None means "use the configured value"."""

    task: str | None
    role: str
    instructions: str
    overrides: dict[str, Any]
    project_dir: Path | None = None


@dataclass(slots=True)
class DelegateInitCommand:
    """CLI input for config initialisation."""

    project_dir: Path | None = None


@dataclass(slots=True)
class DelegateRolesCommand:
    """CLI input for role listing."""

    project_dir: Path | None = None


class DelegateCliController:
    """Glue between click commands and the delegation runtime."""

    def __init__(self, session_factory: SessionFactory = CodexExecSession) -> None:
        self.session_factory = session_factory

    def run(self, command: DelegateRunCommand) -> list[str]:
        if not command.task or not command.task.strip():
            raise OptionsError("Missing required --task value.")
        settings = _resolve_settings(command)
        options = DelegateOptions(
            task=command.task,
            role=command.role,
            instructions=command.instructions,
            settings=settings,
        )
        outcome = asyncio.run(
            run_delegation(
                options,
                project_dir=command.project_dir,
                session_factory=self.session_factory,
            ),
        )
        return report_lines(
            outcome.results,
            verbose=settings.verbose,
            max_items=settings.max_items,
            output_schema=outcome.output_schema,
        )

    def init(self, command: DelegateInitCommand) -> list[str]:
        _, created = ensure_config(command.project_dir)
        path = config_path(command.project_dir)
        if created:
            return [f"Created {path}"]
        return [f"Config already exists at {path}"]

    def roles(self, command: DelegateRolesCommand) -> list[str]:
        return render_role_lines(list_roles(command.project_dir))


def _resolve_settings(command: DelegateRunCommand) -> DelegateSettings:
    settings, _ = ensure_config(command.project_dir)
    settings = settings.with_env_overrides()
    explicit = {key: value for key, value in command.overrides.items() if value is not None}
    return replace(settings, **explicit)
