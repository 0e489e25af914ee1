"""Text sinks the stream coordinator writes progress output to."""

from __future__ import annotations

from typing import Protocol

import click


class TextSink(Protocol):
    """Append-only text destination."""

    def write(self, text: str, /) -> object:
        """Append ``text`` verbatim."""


class ConsoleSink:
    """Operator console; writes through click so CliRunner can capture it."""

    def write(self, text: str, /) -> None:
        click.echo(text, nl=False)


class MemorySink:
    """Collects writes in memory, mainly for tests and embedding callers."""

    def __init__(self) -> None:
        self.chunks: list[str] = []

    def write(self, text: str, /) -> None:
        self.chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def count(self, line: str) -> int:
        return sum(1 for chunk in self.chunks if chunk == line)
