from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Any]


class PeriodicTimer(Protocol):
    @property
    def running(self) -> bool: ...

    def start(self, callback: TimerCallback) -> None: ...

    def stop(self) -> None: ...


class PolledTimer:
    """Timer driven from outside, e.g. by a Streamlit fragment re-running on ``run_every``.

    Fire times follow a fixed schedule of ``interval_seconds`` from ``start``. A poll that lands
    within ``tolerance_ratio`` of an interval before the due time still fires, so rerun jitter
    does not skip ticks. ``poll`` fires the callback at most once per call.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        tolerance_ratio: float = 0.05,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if not 0 <= tolerance_ratio < 1:
            raise ValueError("tolerance_ratio must be in [0, 1)")
        self.interval_seconds = float(interval_seconds)
        self.tolerance_seconds = self.interval_seconds * float(tolerance_ratio)
        self._clock = clock
        self._callback: TimerCallback | None = None
        self._next_due: float = 0.0

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TimerCallback) -> None:
        self._callback = callback
        self._next_due = self._clock() + self.interval_seconds

    def stop(self) -> None:
        self._callback = None

    def poll(self) -> Any:
        callback = self._callback
        if callback is None:
            return None
        now = self._clock()
        if now < self._next_due - self.tolerance_seconds:
            return None
        self._next_due += self.interval_seconds
        if self._next_due <= now:
            # More than one interval behind: fire once and realign instead of bursting.
            self._next_due = now + self.interval_seconds
        return callback()


class AsyncioPeriodicTimer:
    """Runs the callback on the current event loop every ``interval_seconds`` until stopped."""

    def __init__(self, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = float(interval_seconds)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: TimerCallback) -> None:
        self.stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(callback))

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, callback: TimerCallback) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                callback()
            except Exception:
                logger.exception("Periodic timer callback failed")
