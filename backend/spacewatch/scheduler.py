# spacewatch/scheduler.py
# ------------------------------------------------------------
# Recurring callbacks on the running asyncio loop.
#
# Same shape as a plain background loop:
#   while True: await asyncio.sleep(rate); work()
# wrapped so the owner can start and cancel it explicitly.
# ------------------------------------------------------------

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs `callback` every `interval_sec` on the current event loop.

    The first call happens one interval after start(). The callback is
    synchronous, so one tick always finishes before the next can begin.
    """

    def __init__(self, name: str, interval_sec: float, callback: Callable[[], None]):
        self.name = name
        self.interval_sec = interval_sec
        self.callback = callback
        self._task: Optional[asyncio.Task] = None
        self._cancelled: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Schedule the loop. Must be called from inside a running event loop.
        Calling it while already running is a no-op.
        """
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=self.name)
        logger.debug("%s: started (every %.3fs)", self.name, self.interval_sec)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_sec)
            try:
                self.callback()
            except Exception:
                logger.exception("%s: tick failed", self.name)

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._cancelled, self._task = self._task, None
        logger.debug("%s: stopped", self.name)

    async def aclose(self) -> None:
        """
        stop() and wait until the cancelled loop has actually finished.
        """
        self.stop()
        task, self._cancelled = self._cancelled, None
        if task is None or task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task
