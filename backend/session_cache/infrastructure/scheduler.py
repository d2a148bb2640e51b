"""Recurring Task — supervised periodic sweep with an explicit stop signal.

Invariants:
    - Each tick waits `interval` seconds, then runs the action once
    - An exception inside the action is logged; the next tick still happens
    - stop() wakes the waiter immediately and awaits the task; safe to call twice
    - Ticks never overlap: the next wait starts after the action returns

Design Decisions:
    - asyncio.Event as stop signal instead of bare cancel(): a sweep in progress
      (e.g. a flush mid-write) finishes before the task exits
    - run_once() public so tests drive ticks deterministically
"""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RecurringTask:
    """Run an async action every `interval` seconds until stopped."""

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], Awaitable[object]],
        log: logging.Logger | None = None,
    ):
        if interval <= 0:
            raise ValueError(f"{name}: interval must be positive")
        self.name = name
        self.interval = interval
        self._action = action
        self._log = log or logger
        self._stopped = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def run_once(self) -> None:
        self.ticks += 1
        try:
            await self._action()
        except Exception as e:
            self._log.error(
                f"{self.name} tick failed: {e}", exc_info=True,
                extra={"error_code": getattr(e, "code", None)},
            )

    async def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                await self.run_once()
