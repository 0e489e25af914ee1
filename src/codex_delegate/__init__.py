"""Delegate tasks to a Codex sub-agent."""

__version__ = "0.1.0"
