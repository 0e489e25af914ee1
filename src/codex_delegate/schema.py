"""Output schema resolution for structured responses."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "status": {"type": "string"},
        "risks": {"type": "array", "items": {"type": "string"}},
        "actions": {"type": "array", "items": {"type": "string"}},
        "nextSteps": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["summary", "status"],
    "additionalProperties": True,
}


class SchemaError(ValueError):
    """Schema file could not be read or is not a JSON object."""


def resolve_output_schema(
    schema_file: str | None,
    *,
    structured: bool,
    project_dir: Path | None = None,
) -> dict[str, Any] | None:
    """Return the schema to request, or None for free-form output.

    A schema file wins over ``structured``; ``structured`` alone selects
    ``DEFAULT_OUTPUT_SCHEMA``.
    """

    if schema_file:
        try:
            return _read_json_object(schema_file, project_dir)
        except (OSError, ValueError) as error:
            raise SchemaError(
                f"Failed to read or parse schema file at {schema_file}: {error}",
            ) from error
    if structured:
        return json.loads(json.dumps(DEFAULT_OUTPUT_SCHEMA))
    return None


def _read_json_object(schema_file: str, project_dir: Path | None) -> dict[str, Any]:
    root = (project_dir or Path.cwd()).resolve()
    candidate = Path(schema_file)
    if not candidate.is_absolute():
        candidate = root / candidate
    resolved = candidate.resolve()
    if not resolved.is_relative_to(root):
        raise ValueError("Schema path must be inside project directory.")
    parsed = json.loads(resolved.read_text("utf-8"))
    if not isinstance(parsed, dict):
        raise ValueError(f"Schema file at {schema_file} must contain a JSON object at the root.")
    return parsed
