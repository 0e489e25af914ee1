"""Typed view over the loosely-typed JSON events emitted by ``codex exec --json``.

Raw payloads are parsed into a closed set of frozen dataclasses. Anything that
does not match the declared shape of its kind (unknown ``type`` tags, missing
fields, wrong field types) collapses into ``UnknownItem`` / ``IgnoredEvent`` so
that newer Codex releases degrade silently instead of aborting a session.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import assert_never

from codex_delegate.stream.results import StreamResults

UNKNOWN_ERROR_MESSAGE = "Unknown error"


@dataclass(frozen=True, slots=True)
class FileChange:
    """One changed path inside a ``file_change`` item."""

    kind: str
    path: str

    def describe(self) -> str:
        return f"{self.kind}: {self.path}"


@dataclass(frozen=True, slots=True)
class AgentMessageItem:
    text: str


@dataclass(frozen=True, slots=True)
class CommandExecutionItem:
    command: str


@dataclass(frozen=True, slots=True)
class FileChangeItem:
    changes: tuple[FileChange, ...]


@dataclass(frozen=True, slots=True)
class McpToolCallItem:
    server: str
    tool: str

    def describe(self) -> str:
        return f"{self.server}:{self.tool}"


@dataclass(frozen=True, slots=True)
class WebSearchItem:
    query: str


@dataclass(frozen=True, slots=True)
class UnknownItem:
    """Unrecognised or malformed item; never mutates results."""

    item_type: str | None


StreamItem = (
    AgentMessageItem
    | CommandExecutionItem
    | FileChangeItem
    | McpToolCallItem
    | WebSearchItem
    | UnknownItem
)


@dataclass(frozen=True, slots=True)
class TokenUsage:
    input_tokens: object
    output_tokens: object


@dataclass(frozen=True, slots=True)
class ItemCompletedEvent:
    item: StreamItem


@dataclass(frozen=True, slots=True)
class TurnCompletedEvent:
    usage: TokenUsage | None


@dataclass(frozen=True, slots=True)
class TurnFailedEvent:
    message: str


@dataclass(frozen=True, slots=True)
class StreamErrorEvent:
    message: str


@dataclass(frozen=True, slots=True)
class IgnoredEvent:
    """Any event type the coordinator does not act on."""

    event_type: str | None


StreamEvent = (
    ItemCompletedEvent | TurnCompletedEvent | TurnFailedEvent | StreamErrorEvent | IgnoredEvent
)


def parse_item(payload: object) -> StreamItem:  # noqa: PLR0911
    """Map a raw ``item`` payload onto its typed variant."""

    if not isinstance(payload, Mapping):
        return UnknownItem(item_type=None)
    item_type = payload.get("type")
    if not isinstance(item_type, str):
        return UnknownItem(item_type=None)

    if item_type == "agent_message":
        text = payload.get("text")
        if isinstance(text, str):
            return AgentMessageItem(text=text)
    elif item_type == "command_execution":
        command = payload.get("command")
        if isinstance(command, str):
            return CommandExecutionItem(command=command)
    elif item_type == "file_change":
        changes = _parse_file_changes(payload.get("changes"))
        if changes is not None:
            return FileChangeItem(changes=changes)
    elif item_type == "mcp_tool_call":
        server = payload.get("server")
        tool = payload.get("tool")
        if isinstance(server, str) and isinstance(tool, str):
            return McpToolCallItem(server=server, tool=tool)
    elif item_type == "web_search":
        query = payload.get("query")
        if isinstance(query, str):
            return WebSearchItem(query=query)
    return UnknownItem(item_type=item_type)


def parse_event(payload: object) -> StreamEvent:
    """Map a raw top-level event payload onto its typed variant."""

    if not isinstance(payload, Mapping):
        return IgnoredEvent(event_type=None)
    event_type = payload.get("type")

    if event_type == "item.completed":
        item = payload.get("item")
        if not item:
            return IgnoredEvent(event_type=event_type)
        return ItemCompletedEvent(item=parse_item(item))
    if event_type == "turn.completed":
        return TurnCompletedEvent(usage=_parse_usage(payload.get("usage")))
    if event_type == "turn.failed":
        error = payload.get("error")
        message = error.get("message") if isinstance(error, Mapping) else None
        return TurnFailedEvent(message=_message_or_fallback(message))
    if event_type == "error":
        return StreamErrorEvent(message=_message_or_fallback(payload.get("message")))
    return IgnoredEvent(event_type=event_type if isinstance(event_type, str) else None)


def handle_item_completed(item: StreamItem, results: StreamResults) -> None:
    """Merge one completed item into ``results``."""

    match item:
        case AgentMessageItem(text=text):
            results.final_response = text
        case CommandExecutionItem(command=command):
            results.commands.append(command)
        case FileChangeItem(changes=changes):
            results.file_changes.extend(change.describe() for change in changes)
        case McpToolCallItem():
            results.tool_calls.append(item.describe())
        case WebSearchItem(query=query):
            results.web_queries.append(query)
        case UnknownItem():
            pass
        case _:
            assert_never(item)


def handle_turn_completed(event: TurnCompletedEvent, results: StreamResults) -> None:
    """Store the usage summary of a completed turn; the latest turn wins."""

    if event.usage is None:
        return
    results.usage_summary = (
        f"Usage: input {_format_count(event.usage.input_tokens)}, "
        f"output {_format_count(event.usage.output_tokens)}"
    )


def describe_item(item: StreamItem) -> list[str]:
    """Human-readable progress lines for a completed item."""

    match item:
        case CommandExecutionItem(command=command):
            return [f"Command executed: {command}"]
        case FileChangeItem(changes=changes):
            return [f"File change: {change.describe()}" for change in changes]
        case McpToolCallItem():
            return [f"Tool call: {item.describe()}"]
        case WebSearchItem(query=query):
            return [f"Web search: {query}"]
        case AgentMessageItem() | UnknownItem():
            return []
        case _:
            assert_never(item)


def _parse_file_changes(raw: object) -> tuple[FileChange, ...] | None:
    if not isinstance(raw, list):
        return None
    changes: list[FileChange] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            return None
        kind = entry.get("kind")
        path = entry.get("path")
        if not isinstance(kind, str) or not isinstance(path, str):
            return None
        changes.append(FileChange(kind=kind, path=path))
    return tuple(changes)


def _parse_usage(raw: object) -> TokenUsage | None:
    """Any usage object counts as present, even one without token counts."""

    if not isinstance(raw, Mapping):
        return None
    return TokenUsage(
        input_tokens=raw.get("input_tokens"),
        output_tokens=raw.get("output_tokens"),
    )


def _format_count(value: object) -> str:
    return "unknown" if value is None else str(value)


def _message_or_fallback(message: object) -> str:
    if isinstance(message, str):
        return message
    return UNKNOWN_ERROR_MESSAGE
