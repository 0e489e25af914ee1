from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import allure
import pytest

from codex_delegate.config import DelegateOptions, DelegateSettings, OptionsError
from codex_delegate.runtime import prepare_delegation, run_delegation
from codex_delegate.schema import SchemaError
from codex_delegate.session.base import SessionRequest
from codex_delegate.stream.sinks import MemorySink

pytestmark = [
    allure.epic("Delegation Runtime"),
    allure.feature("Run Orchestration"),
]


class RecordingSession:
    """Fake session replaying canned events and remembering its request."""

    requests: list[SessionRequest] = []

    def __init__(self, request: SessionRequest) -> None:
        self.request = request
        RecordingSession.requests.append(request)

    async def events(self) -> AsyncIterator[Any]:
        yield {"type": "item.completed", "item": {"type": "command_execution", "command": "ls"}}
        yield {"type": "item.completed", "item": {"type": "agent_message", "text": '{"a": 1}'}}
        yield {"type": "turn.completed", "usage": {"input_tokens": 7, "output_tokens": 8}}


@pytest.fixture(autouse=True)
def _reset_requests() -> None:
    RecordingSession.requests = []


def test_prepare_delegation_builds_prompt_from_role(project_dir: Path, write_role) -> None:
    write_role("implementation", "You implement features.")
    options = DelegateOptions(task="Add tests", instructions="Use pytest")

    prepared = prepare_delegation(options, project_dir=project_dir)

    assert prepared.request.prompt == (
        "You implement features.\n\nInstructions:\nUse pytest\n\nTask:\nAdd tests"
    )
    assert prepared.request.output_schema is None
    assert prepared.log_path is None


def test_prepare_delegation_rejects_unknown_role(project_dir: Path, write_role) -> None:
    write_role("implementation", "Implement.")
    write_role("review", "Review.")

    with pytest.raises(OptionsError) as error_info:
        prepare_delegation(DelegateOptions(task="x", role="ghost"), project_dir=project_dir)

    assert str(error_info.value) == (
        'Unknown --role "ghost". Available roles: implementation, review.'
    )


def test_prepare_delegation_warns_without_roles(project_dir: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        prepared = prepare_delegation(DelegateOptions(task="Do it"), project_dir=project_dir)

    assert prepared.request.prompt == "Task:\nDo it"
    assert "No roles available" in caplog.text


def test_prepare_delegation_requires_task(project_dir: Path) -> None:
    with pytest.raises(OptionsError, match="Missing required --task value."):
        prepare_delegation(DelegateOptions(task="  "), project_dir=project_dir)


def test_prepare_delegation_validates_before_schema(project_dir: Path) -> None:
    options = DelegateOptions(
        task="x",
        settings=DelegateSettings(sandbox="bogus", schema_file="missing.json"),
    )

    with pytest.raises(OptionsError, match="--sandbox"):
        prepare_delegation(options, project_dir=project_dir)


def test_prepare_delegation_reports_schema_errors(project_dir: Path) -> None:
    options = DelegateOptions(task="x", settings=DelegateSettings(schema_file="missing.json"))

    with pytest.raises(SchemaError):
        prepare_delegation(options, project_dir=project_dir)


def test_run_delegation_returns_results(project_dir: Path) -> None:
    output = MemorySink()
    options = DelegateOptions(task="List files", settings=DelegateSettings(structured=True))

    outcome = asyncio.run(
        run_delegation(
            options,
            project_dir=project_dir,
            output=output,
            session_factory=RecordingSession,
        ),
    )

    assert outcome.results.commands == ["ls"]
    assert outcome.results.usage_summary == "Usage: input 7, output 8"
    assert outcome.output_schema is not None
    assert RecordingSession.requests[0].output_schema == outcome.output_schema
    assert output.chunks == ["Command executed: ls\n"]


def test_run_delegation_appends_event_log(project_dir: Path) -> None:
    log = project_dir / "codex-delegate.log"
    log.write_text('{"previous": true}\n', "utf-8")
    options = DelegateOptions(task="x", settings=DelegateSettings(log_file="codex-delegate.log"))

    asyncio.run(
        run_delegation(
            options,
            project_dir=project_dir,
            output=MemorySink(),
            session_factory=RecordingSession,
        ),
    )

    lines = log.read_text("utf-8").splitlines()
    assert json.loads(lines[0]) == {"previous": True}
    assert [json.loads(line)["type"] for line in lines[1:]] == [
        "item.completed",
        "item.completed",
        "turn.completed",
    ]
