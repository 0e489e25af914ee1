"""Shared test fixtures."""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path

import pytest

_ECHO_AGENT_COMMAND = f"{shlex.quote(sys.executable)} -m codex_delegate.session.echo_agent"


@pytest.fixture()
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    """Run the test from an empty project directory with no delegate env overrides."""

    for name in list(os.environ):
        if name.startswith("CODEX_DELEGATE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def echo_agent(project_dir: Path, monkeypatch) -> str:
    """Point the configured Codex command at the local echo agent."""

    monkeypatch.setenv("CODEX_DELEGATE_CODEX_COMMAND", _ECHO_AGENT_COMMAND)
    return _ECHO_AGENT_COMMAND


@pytest.fixture()
def write_role(project_dir: Path):
    """Return a writer for `.codex/<role>.md` templates in the project."""

    def _write(role: str, text: str) -> Path:
        path = project_dir / ".codex" / f"{role}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, "utf-8")
        return path

    return _write


@pytest.fixture()
def write_copilot_agent(project_dir: Path):
    """Return a writer for `.github/agents/<file>` Copilot agents in the project."""

    def _write(file_name: str, text: str) -> Path:
        path = project_dir / ".github" / "agents" / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, "utf-8")
        return path

    return _write
