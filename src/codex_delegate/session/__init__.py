"""Agent session implementations."""

from codex_delegate.session.base import AgentSession, SessionRequest, SessionStartError
from codex_delegate.session.codex_exec import CodexExecSession, build_exec_args

__all__ = [
    "AgentSession",
    "CodexExecSession",
    "SessionRequest",
    "SessionStartError",
    "build_exec_args",
]
