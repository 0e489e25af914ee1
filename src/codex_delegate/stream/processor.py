"""Event-stream coordinator for one delegated Codex run."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, assert_never

from codex_delegate.stream.events import (
    IgnoredEvent,
    ItemCompletedEvent,
    StreamErrorEvent,
    TurnCompletedEvent,
    TurnFailedEvent,
    describe_item,
    handle_item_completed,
    handle_turn_completed,
    parse_event,
)
from codex_delegate.stream.liveness import LIVENESS_INTERVAL_SECONDS, LivenessMonitor
from codex_delegate.stream.results import StreamResults
from codex_delegate.stream.sinks import ConsoleSink, TextSink

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MINUTES = 10.0


class StreamFailureReason(str, Enum):
    """Why a stream run was aborted."""

    TIMEOUT = "timeout"
    TURN_FAILED = "turn_failed"
    STREAM_ERROR = "stream_error"


class DelegateStreamError(RuntimeError):
    """Fatal condition reported by, or about, the upstream session."""

    def __init__(self, message: str, *, reason: StreamFailureReason) -> None:
        super().__init__(message)
        self.reason = reason


class DelegateTimeoutError(DelegateStreamError):
    """No run completion before the overall deadline."""

    def __init__(self, timeout_minutes: float) -> None:
        super().__init__(
            f"Codex delegation timed out after {timeout_minutes:g} minutes.",
            reason=StreamFailureReason.TIMEOUT,
        )
        self.timeout_minutes = timeout_minutes


@dataclass(slots=True)
class StreamOptions:
    """Options the coordinator reads from the delegate configuration."""

    verbose: bool = False
    timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES


async def process_stream(  # noqa: PLR0913
    events: AsyncIterable[Any],
    options: StreamOptions,
    log_sink: TextSink | None,
    timeout_seconds: float,
    *,
    output: TextSink | None = None,
    liveness_interval_seconds: float = LIVENESS_INTERVAL_SECONDS,
) -> StreamResults:
    """Consume ``events`` and accumulate them into a ``StreamResults``.

    Every pull from the upstream iterator is raced against a single deadline
    armed for ``timeout_seconds``. ``turn.failed`` and ``error`` events abort
    the run with ``DelegateStreamError``; exceptions raised by the iterator
    itself propagate unchanged. Whatever the exit path, the iterator's
    ``aclose()`` hook, the deadline timer and the liveness monitor are
    released exactly once before returning or raising.
    """

    sink = output if output is not None else ConsoleSink()
    loop = asyncio.get_running_loop()
    results = StreamResults()
    monitor = LivenessMonitor(sink, interval_seconds=liveness_interval_seconds)
    deadline: asyncio.Future[None] = loop.create_future()

    async with contextlib.AsyncExitStack() as cleanup:
        monitor.start()
        cleanup.callback(monitor.stop)
        deadline_handle = loop.call_later(timeout_seconds, _expire, deadline)
        cleanup.callback(deadline_handle.cancel)
        iterator = events.__aiter__()
        cleanup.push_async_callback(_close_iterator, iterator)

        while True:
            pull = await _next_or_deadline(iterator, deadline, cleanup)
            if pull is None:
                raise DelegateTimeoutError(options.timeout_minutes)
            try:
                event = pull.result()
            except StopAsyncIteration:
                break

            _record_raw_event(event, log_sink=log_sink, output=sink, verbose=options.verbose)
            monitor.touch()
            _apply_event(event, results, sink)

    return results


async def _next_or_deadline(
    iterator: AsyncIterator[Any],
    deadline: asyncio.Future[None],
    cleanup: contextlib.AsyncExitStack,
) -> asyncio.Future[Any] | None:
    """Return the settled pull, or ``None`` when the deadline won the race."""

    pull = asyncio.ensure_future(iterator.__anext__())
    try:
        await asyncio.wait({pull, deadline}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        # The pull must settle before aclose() can run on the same generator.
        cleanup.push_async_callback(_cancel_pull, pull)
        raise
    if pull.done():
        return pull
    cleanup.push_async_callback(_cancel_pull, pull)
    return None


def _apply_event(raw: Any, results: StreamResults, output: TextSink) -> None:
    event = parse_event(raw)
    match event:
        case ItemCompletedEvent(item=item):
            handle_item_completed(item, results)
            for line in describe_item(item):
                output.write(f"{line}\n")
        case TurnCompletedEvent():
            handle_turn_completed(event, results)
        case TurnFailedEvent(message=message):
            raise DelegateStreamError(message, reason=StreamFailureReason.TURN_FAILED)
        case StreamErrorEvent(message=message):
            raise DelegateStreamError(message, reason=StreamFailureReason.STREAM_ERROR)
        case IgnoredEvent():
            pass
        case _:
            assert_never(event)


def _record_raw_event(
    event: Any,
    *,
    log_sink: TextSink | None,
    output: TextSink,
    verbose: bool,
) -> None:
    if log_sink is None and not verbose:
        return
    line = json.dumps(event, ensure_ascii=False, default=str) + "\n"
    if log_sink is not None:
        log_sink.write(line)
    if verbose:
        output.write(line)


def _expire(deadline: asyncio.Future[None]) -> None:
    if not deadline.done():
        deadline.set_result(None)


async def _cancel_pull(pull: asyncio.Future[Any]) -> None:
    pull.cancel()
    with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
        await pull


async def _close_iterator(iterator: AsyncIterator[Any]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if not callable(aclose):
        return
    await aclose()
