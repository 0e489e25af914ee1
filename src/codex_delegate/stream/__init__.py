"""Codex event-stream coordination."""

from codex_delegate.stream.liveness import (
    LIVENESS_INTERVAL_SECONDS,
    LIVENESS_MESSAGE,
    LivenessMonitor,
)
from codex_delegate.stream.processor import (
    DelegateStreamError,
    DelegateTimeoutError,
    StreamFailureReason,
    StreamOptions,
    process_stream,
)
from codex_delegate.stream.results import StreamResults
from codex_delegate.stream.sinks import ConsoleSink, MemorySink, TextSink

__all__ = [
    "LIVENESS_INTERVAL_SECONDS",
    "LIVENESS_MESSAGE",
    "ConsoleSink",
    "DelegateStreamError",
    "DelegateTimeoutError",
    "LivenessMonitor",
    "MemorySink",
    "StreamFailureReason",
    "StreamOptions",
    "StreamResults",
    "TextSink",
    "process_stream",
]
