"""Discovery of GitHub Copilot custom agents (``.github/agents/*.agent.md``).

Each agent file starts with YAML front matter followed by the prompt body::

    ---
    name: reviewer
    description: Reviews pull requests
    tools: ['read', 'search']
    ---
    You are a careful reviewer...

The front matter is read with ``yaml.safe_load`` and must be a mapping. Files
that do not fit are skipped with a warning so one bad agent never hides the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

AGENTS_DIRECTORY = Path(".github") / "agents"
AGENT_SUFFIX = ".agent.md"
FRONT_MATTER_DELIMITER = "---"

_METADATA_LIST_KEYS = ("tools", "mcp-servers")
_METADATA_SCALAR_KEYS = ("model", "target")

FrontMatter = dict[str, Any]


class FrontMatterError(ValueError):
    """Malformed agent front matter."""


@dataclass(slots=True)
class CopilotRoleSummary:
    id: str
    description: str
    source: str = "copilot"


@dataclass(slots=True)
class CopilotRoleTemplate:
    id: str
    description: str
    prompt: str
    source: str = "copilot"
    metadata: dict[str, str | list[str]] = field(default_factory=dict)


@dataclass(slots=True)
class ParsedAgentFile:
    front_matter: FrontMatter
    body: str


def parse_front_matter(text: str) -> FrontMatter:
    """Load the block between the ``---`` delimiters as a YAML mapping."""

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise FrontMatterError(f"Invalid YAML: {error}") from error
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise FrontMatterError("Front matter must be a YAML mapping.")
    return loaded


def parse_agent_file(content: str, file_name: str) -> ParsedAgentFile | None:
    """Split an agent file into front matter and body; None when unusable."""

    lines = content.lstrip().splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        logger.warning("Copilot agent %r is missing YAML front matter, skipping.", file_name)
        return None
    try:
        end = next(
            index
            for index, line in enumerate(lines[1:], start=1)
            if line.strip() == FRONT_MATTER_DELIMITER
        )
    except StopIteration:
        logger.warning("Copilot agent %r is missing closing front matter, skipping.", file_name)
        return None

    try:
        front_matter = parse_front_matter("\n".join(lines[1:end]))
    except FrontMatterError as error:
        logger.warning(
            "Copilot agent %r has malformed front matter, skipping: %s",
            file_name,
            error,
        )
        return None
    body = "\n".join(lines[end + 1 :]).strip()
    return ParsedAgentFile(front_matter=front_matter, body=body)


def resolve_role_id(front_matter: FrontMatter, file_name: str) -> str:
    name = front_matter.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    return file_name.removesuffix(AGENT_SUFFIX)


def resolve_description(front_matter: FrontMatter) -> str:
    description = front_matter.get("description")
    if isinstance(description, str):
        return description.strip()
    return ""


def resolve_metadata(front_matter: FrontMatter) -> dict[str, str | list[str]]:
    metadata: dict[str, str | list[str]] = {}
    for key in _METADATA_LIST_KEYS:
        value = front_matter.get(key)
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            metadata[key] = value
    for key in _METADATA_SCALAR_KEYS:
        value = front_matter.get(key)
        if isinstance(value, str) and value:
            metadata[key] = value
    return metadata


def load_copilot_agents(project_dir: Path | None = None) -> list[CopilotRoleTemplate]:
    """Load every valid agent; duplicates keep the first file in sorted order."""

    agents: list[CopilotRoleTemplate] = []
    seen: set[str] = set()
    for entry, content in _iter_agent_files(project_dir):
        parsed = parse_agent_file(content, entry.name)
        if parsed is None:
            continue
        description = resolve_description(parsed.front_matter)
        if not description:
            logger.warning("Copilot agent %r has no description, skipping.", entry.name)
            continue
        if not parsed.body:
            logger.warning("Copilot agent %r has an empty prompt body, skipping.", entry.name)
            continue
        role_id = resolve_role_id(parsed.front_matter, entry.name)
        if role_id in seen:
            logger.warning(
                "Duplicate Copilot role %r found in %r, skipping.",
                role_id,
                entry.name,
            )
            continue
        seen.add(role_id)
        agents.append(
            CopilotRoleTemplate(
                id=role_id,
                description=description,
                prompt=parsed.body,
                metadata=resolve_metadata(parsed.front_matter),
            ),
        )
    return agents


def list_copilot_roles(project_dir: Path | None = None) -> list[CopilotRoleSummary]:
    return sorted(
        (
            CopilotRoleSummary(id=agent.id, description=agent.description)
            for agent in load_copilot_agents(project_dir)
        ),
        key=lambda summary: summary.id,
    )


def resolve_copilot_role(
    role_id: str,
    project_dir: Path | None = None,
) -> CopilotRoleTemplate | None:
    for agent in load_copilot_agents(project_dir):
        if agent.id == role_id:
            return agent
    return None


def _iter_agent_files(project_dir: Path | None):
    root = (project_dir or Path.cwd()).resolve()
    agents_dir = root / AGENTS_DIRECTORY
    if not agents_dir.is_dir():
        return
    real_agents_dir = agents_dir.resolve()
    if not real_agents_dir.is_relative_to(root):
        logger.warning("Copilot agents directory resolves outside the project, ignoring.")
        return

    for entry in sorted(agents_dir.iterdir(), key=lambda path: path.name):
        if not entry.name.endswith(AGENT_SUFFIX):
            continue
        if entry.is_symlink():
            logger.warning("Copilot agent %r is a symlink, skipping.", entry.name)
            continue
        if not entry.is_file() or not entry.resolve().is_relative_to(real_agents_dir):
            logger.warning(
                "Copilot agent %r is outside the agents directory, skipping.",
                entry.name,
            )
            continue
        try:
            content = entry.read_text("utf-8")
        except OSError as error:
            logger.warning("Failed to read Copilot agent %r, skipping: %s", entry.name, error)
            continue
        if not content.strip():
            continue
        yield entry, content

