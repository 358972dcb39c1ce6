"""
errors/scheduling.py - Cancellable scheduled work

Module 2: Error Generator

Thin handle around an asyncio task. Cancelling is idempotent and, because the
loop is single-threaded, a cancelled handle never runs its callback again.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, Optional
import asyncio
import logging
import uuid

logger = logging.getLogger("errors.scheduling")

SleepFn = Callable[[float], Awaitable[Any]]


class ScheduledTask:
    """
    Handle for periodic or one-shot deferred work.

    The callback is synchronous; it runs on the loop that created the handle.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Any],
        repeat: bool = True,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.handle_id = uuid.uuid4().hex[:8]
        self.name = name
        self.interval = max(0.0, float(interval))
        self.repeat = repeat
        self._callback = callback
        self._sleep = sleep
        self._cancelled = False
        self._runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_active(self) -> bool:
        return not self._cancelled and self._task is not None and not self._task.done()

    @property
    def run_count(self) -> int:
        return self._runs

    def start(self) -> "ScheduledTask":
        """Start the timer on the running loop."""
        if self._task is None and not self._cancelled:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run(), name=f"{self.name}-{self.handle_id}")
            logger.debug(f"Scheduled {self.name} every {self.interval}s")
        return self

    def cancel(self) -> None:
        """Cancel pending work. Safe to call any number of times."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"Cancelled {self.name} after {self._runs} run(s)")

    async def wait(self) -> None:
        """Wait for the underlying task to finish (cancelled or done)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while not self._cancelled:
            try:
                await self._sleep(self.interval)
            except asyncio.CancelledError:
                break

            if self._cancelled:
                break

            self._runs += 1
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Scheduled task {self.name} failed: {e}")

            if not self.repeat:
                break
