"""Role prompt templates stored as ``.codex/<role>.md`` in the project."""

from __future__ import annotations

from pathlib import Path

from codex_delegate.config import config_dir

AGENTS_FILE_NAME = "AGENTS.md"
TEMPLATE_SUFFIX = ".md"


def is_prompt_template_file(name: str) -> bool:
    return name.endswith(TEMPLATE_SUFFIX) and name != AGENTS_FILE_NAME


def resolve_prompt_template(role: str, project_dir: Path | None = None) -> str:
    """Return the trimmed template for ``role``; empty when missing or unsafe."""

    file_name = f"{role}{TEMPLATE_SUFFIX}"
    if file_name == AGENTS_FILE_NAME:
        return ""
    root = (project_dir or Path.cwd()).resolve()
    resolved = (config_dir(root) / file_name).resolve()
    if not resolved.is_relative_to(root):
        return ""
    try:
        return _read_template(resolved)
    except (FileNotFoundError, IsADirectoryError):
        return ""


def list_prompt_roles(project_dir: Path | None = None) -> list[str]:
    """Sorted role ids with a non-blank ``.codex`` template."""

    root = (project_dir or Path.cwd()).resolve()
    prompts_dir = config_dir(root).resolve()
    if not prompts_dir.is_relative_to(root) or not prompts_dir.is_dir():
        return []

    roles: list[str] = []
    for entry in prompts_dir.iterdir():
        if not is_prompt_template_file(entry.name) or not entry.is_file():
            continue
        if not entry.resolve().is_relative_to(prompts_dir):
            continue
        try:
            if _read_template(entry):
                roles.append(entry.name.removesuffix(TEMPLATE_SUFFIX))
        except FileNotFoundError:
            continue
    return sorted(roles)


def _read_template(path: Path) -> str:
    return path.read_text("utf-8").strip()
