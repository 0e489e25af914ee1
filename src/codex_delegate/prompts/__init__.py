"""Role discovery and prompt composition."""

from codex_delegate.prompts.builder import build_prompt
from codex_delegate.prompts.roles import (
    RoleSource,
    RoleSummary,
    RoleTemplate,
    list_roles,
    render_role_lines,
    resolve_template,
)

__all__ = [
    "RoleSource",
    "RoleSummary",
    "RoleTemplate",
    "build_prompt",
    "list_roles",
    "render_role_lines",
    "resolve_template",
]
