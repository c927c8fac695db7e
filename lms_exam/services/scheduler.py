"""
services/scheduler.py

Cancellable periodic task on the running asyncio loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Calls `callback` every `interval` seconds until cancelled.

    The next sleep starts after the callback returns, so calls never overlap.
    Exceptions from the callback are logged and the loop keeps going.
    """

    def __init__(self, name: str, interval: float, callback: Callable[[], Awaitable[None]]):
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        """Stop the loop. Safe to call from inside the callback."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def stop(self) -> None:
        """Cancel and wait until the loop has unwound. From inside the callback it only cancels."""
        task = self._task
        self.cancel()
        if task is None or task is asyncio.current_task():
            return
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    await self._callback()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception(f"Periodic task '{self.name}' failed")
        except asyncio.CancelledError:
            logger.debug(f"Periodic task '{self.name}' cancelled")
