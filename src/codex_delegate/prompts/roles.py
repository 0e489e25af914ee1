"""Role aggregation across ``.codex`` templates and Copilot agents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from codex_delegate.prompts.copilot_agents import list_copilot_roles, resolve_copilot_role
from codex_delegate.prompts.templates import list_prompt_roles, resolve_prompt_template


class RoleSource(str, Enum):
    CODEX = "codex"
    COPILOT = "copilot"


@dataclass(slots=True)
class RoleSummary:
    id: str
    source: RoleSource
    description: str | None = None


@dataclass(slots=True)
class RoleTemplate:
    id: str
    source: RoleSource
    prompt: str
    description: str | None = None
    metadata: dict[str, str | list[str]] = field(default_factory=dict)


def list_roles(project_dir: Path | None = None) -> list[RoleSummary]:
    """All roles sorted by id; ``.codex`` templates win on id collisions."""

    roles: dict[str, RoleSummary] = {}
    for copilot_role in list_copilot_roles(project_dir):
        roles[copilot_role.id] = RoleSummary(
            id=copilot_role.id,
            source=RoleSource.COPILOT,
            description=copilot_role.description,
        )
    for role_id in list_prompt_roles(project_dir):
        roles[role_id] = RoleSummary(id=role_id, source=RoleSource.CODEX)
    return sorted(roles.values(), key=lambda role: role.id)


def resolve_template(role_id: str, project_dir: Path | None = None) -> RoleTemplate | None:
    prompt = resolve_prompt_template(role_id, project_dir)
    if prompt:
        return RoleTemplate(id=role_id, source=RoleSource.CODEX, prompt=prompt)

    copilot_role = resolve_copilot_role(role_id, project_dir)
    if copilot_role is None:
        return None
    return RoleTemplate(
        id=copilot_role.id,
        source=RoleSource.COPILOT,
        prompt=copilot_role.prompt,
        description=copilot_role.description,
        metadata=copilot_role.metadata,
    )


def render_role_lines(roles: list[RoleSummary]) -> list[str]:
    if not roles:
        return ["No roles available."]
    lines = ["Available roles:"]
    for role in roles:
        suffix = " [copilot]" if role.source is RoleSource.COPILOT else ""
        lines.append(f"{role.id}{suffix}")
    return lines
