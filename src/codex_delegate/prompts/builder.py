"""Prompt composition for a delegated task."""

from __future__ import annotations


def build_prompt(*, template: str, instructions: str, task: str) -> str:
    """Join the role template with optional Instructions/Task sections."""

    sections = [
        template,
        f"Instructions:\n{instructions}" if instructions else "",
        f"Task:\n{task}" if task else "",
    ]
    return "\n\n".join(section for section in sections if section)
