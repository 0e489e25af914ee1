"""Session interface for delegated agent runs."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from codex_delegate.config import DelegateSettings


@dataclass(slots=True)
class SessionRequest:
    """Inputs required to start one delegated run."""

    prompt: str
    settings: DelegateSettings = field(default_factory=DelegateSettings)
    output_schema: dict[str, Any] | None = None


class SessionStartError(RuntimeError):
    """Session failure with retryability hint."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class AgentSession(Protocol):
    """Protocol implemented by agent session runners."""

    def events(self) -> AsyncIterator[Any]:
        """Return the raw event stream for the run."""
