from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from codex_delegate.schema import DEFAULT_OUTPUT_SCHEMA, SchemaError, resolve_output_schema

pytestmark = [
    allure.epic("Structured Output"),
    allure.feature("Schema Resolution"),
]


def test_no_schema_without_structured_or_file(project_dir: Path) -> None:
    assert resolve_output_schema(None, structured=False, project_dir=project_dir) is None


def test_structured_uses_default_schema(project_dir: Path) -> None:
    schema = resolve_output_schema(None, structured=True, project_dir=project_dir)

    assert schema == DEFAULT_OUTPUT_SCHEMA
    assert schema["required"] == ["summary", "status"]
    schema["required"].append("mutated")
    assert DEFAULT_OUTPUT_SCHEMA["required"] == ["summary", "status"]


def test_schema_file_wins_over_structured(project_dir: Path) -> None:
    custom = {"type": "object", "properties": {"answer": {"type": "string"}}}
    (project_dir / "schema.json").write_text(json.dumps(custom), "utf-8")

    assert resolve_output_schema("schema.json", structured=True, project_dir=project_dir) == custom


@pytest.mark.parametrize(
    ("content", "reason"),
    [
        ("[1, 2]", "must contain a JSON object at the root"),
        ("{broken", "Expecting property name"),
    ],
)
def test_invalid_schema_file(project_dir: Path, content: str, reason: str) -> None:
    (project_dir / "schema.json").write_text(content, "utf-8")

    with pytest.raises(SchemaError) as error_info:
        resolve_output_schema("schema.json", structured=False, project_dir=project_dir)

    message = str(error_info.value)
    assert message.startswith("Failed to read or parse schema file at schema.json: ")
    assert reason in message


def test_missing_schema_file(project_dir: Path) -> None:
    with pytest.raises(SchemaError, match="Failed to read or parse schema file at missing.json"):
        resolve_output_schema("missing.json", structured=False, project_dir=project_dir)


def test_schema_outside_project_is_rejected(project_dir: Path) -> None:
    project = project_dir / "project"
    project.mkdir()
    (project_dir / "schema.json").write_text("{}", "utf-8")

    with pytest.raises(SchemaError, match="Schema path must be inside project directory"):
        resolve_output_schema("../schema.json", structured=False, project_dir=project)
