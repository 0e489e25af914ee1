"""Periodic "still working" notifications while the upstream session is silent."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from codex_delegate.stream.sinks import TextSink

logger = logging.getLogger(__name__)

LIVENESS_INTERVAL_SECONDS = 60.0
LIVENESS_MESSAGE = "agent is still working\n"


class LivenessMonitor:
    """Emit one liveness line per full interval without observed activity.

    ``touch()`` is the only thing that resets the silence clock; the monitor's
    own ticks never do, so a session that stays silent for three intervals
    produces three notifications.
    """

    def __init__(
        self,
        sink: TextSink,
        *,
        interval_seconds: float = LIVENESS_INTERVAL_SECONDS,
        message: str = LIVENESS_MESSAGE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Liveness interval must be > 0.")
        self.interval_seconds = interval_seconds
        self.message = message
        self._sink = sink
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self.last_activity = clock()
        self._last_tick = self.last_activity
        self.notifications = 0

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Liveness monitor already started.")
        now = self._clock()
        self.last_activity = now
        self._last_tick = now
        self._task = asyncio.get_running_loop().create_task(self._run())

    def touch(self) -> None:
        self.last_activity = self._clock()

    def tick(self) -> bool:
        """Evaluate one period; return True when a notification was emitted."""

        now = self._clock()
        silent = self.last_activity <= self._last_tick
        self._last_tick = now
        if not silent:
            return False
        self.notifications += 1
        logger.debug("No agent activity for %.1fs", now - self.last_activity)
        self._sink.write(self.message)
        return True

    def stop(self) -> None:
        if self._task is None:
            raise RuntimeError("Liveness monitor is not running.")
        task, self._task = self._task, None
        task.cancel()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.tick()
