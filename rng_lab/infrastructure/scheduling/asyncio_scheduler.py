import asyncio
import logging
from typing import Callable, Optional


class AsyncioTimer:
    """Wraps an asyncio.TimerHandle."""

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler:
    """
    Scheduler running callbacks on an asyncio event loop.

    All callbacks run on the loop thread, which keeps the engine
    single-threaded.
    """
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.logger = logging.getLogger("infrastructure.scheduling.asyncio")
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> AsyncioTimer:
        return AsyncioTimer(self.loop.call_later(max(0.0, delay), callback))
