"""
PollScheduler: owns the single recurring poll timer.

This is a pure asyncio concurrency primitive with no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


class PollScheduler:
    """
    Runs an async action every `interval` seconds.

    At most one timer task exists at any time; reconfigure() cancels it and
    starts a new one. Each tick launches the action as its own task and does
    not wait for earlier runs, so a slow cycle never delays the timer and
    overlapping runs proceed independently.
    """

    def __init__(self, action: Callable[[], Awaitable], interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._action = action
        self._interval = interval
        self._timer: asyncio.Task | None = None
        self._runs: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """Start the timer, replacing any timer that is already running."""
        self._cancel_timer()
        self._timer = asyncio.ensure_future(self._tick_loop(self._interval))

    def reconfigure(self, interval: float) -> None:
        """Switch to a new interval. A running timer is restarted; a stopped one stays stopped."""
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._interval = interval
        if self._timer is not None:
            self.start()

    async def async_stop(self) -> None:
        """Cancel the timer and every run still in flight."""
        timer = self._timer
        self._cancel_timer()
        pending = [t for t in (timer, *self._runs) if t is not None]
        for task in self._runs:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._runs.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _tick_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            run = asyncio.ensure_future(self._run_action())
            self._runs.add(run)
            run.add_done_callback(self._runs.discard)

    async def _run_action(self) -> None:
        try:
            await self._action()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Scheduled poll raised an unexpected error")
