"""Cancellable timers on the running event loop.

Every timer owned by a component is one of these objects, so any teardown
path can cancel all outstanding callbacks.  Cancelling a ``PeriodicTimer``
only stops future ticks: a callback already running is left to finish.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable

from loguru import logger

Callback = Callable[[], Awaitable[object]]


def now_ms() -> int:
    """Wall-clock milliseconds since the epoch."""
    return int(time.time() * 1000)


class PeriodicTimer:
    """Fire ``callback`` every ``interval`` seconds without blocking the ticker.

    Each tick runs the callback in its own task, so a callback slower than
    the interval never delays the next tick.  Overlap control is the
    callback's job.
    """

    def __init__(self, interval: float, callback: Callback, *, name: str = "periodic") -> None:
        self.interval = interval
        self._callback = callback
        self._name = name
        self._ticker: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[object]] = set()

    @property
    def active(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        if self.active:
            return
        self._ticker = asyncio.create_task(self._run(), name=f"{self._name}-ticker")

    def cancel(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self._fire(), name=f"{self._name}-tick")
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _fire(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("Timer {}: tick callback failed", self._name)


class OneShotTimer:
    """Run ``callback`` once after ``delay`` seconds unless cancelled first."""

    def __init__(self, delay: float, callback: Callback, *, name: str = "one-shot") -> None:
        self.delay = delay
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._fired = False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done() and not self._fired

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        # Once the callback has started it is no longer cancellable.
        if self._task is not None and not self._fired:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the timer has fired or been cancelled."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        self._fired = True
        try:
            await self._callback()
        except Exception:
            logger.exception("Timer {}: callback failed", self._name)
