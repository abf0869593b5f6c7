import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple


class VirtualTimer:
    """Timer entry on a VirtualScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return f"VirtualTimer(due={self.due:.3f}, cancelled={self._cancelled}, fired={self.fired})"


class VirtualScheduler:
    """
    Deterministic scheduler driven by a virtual clock.

    Nothing runs until advance() or run_until_idle() moves the clock. Timers
    with the same due time fire in the order they were scheduled.
    """
    def __init__(self, start_time: float = 0.0):
        self.logger = logging.getLogger("infrastructure.scheduling.virtual")
        self._now = start_time
        self._queue: List[Tuple[float, int, VirtualTimer]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> VirtualTimer:
        timer = VirtualTimer(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (timer.due, next(self._counter), timer))
        return timer

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def next_due(self) -> Optional[float]:
        self._discard_cancelled()
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every timer that falls due on the way.

        Args:
            seconds: Amount of virtual time to advance

        Returns:
            Number of callbacks fired
        """
        target = self._now + seconds
        fired = 0
        while True:
            self._discard_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            due, _, timer = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            timer.fired = True
            timer.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_callbacks: int = 100000) -> int:
        """
        Fire timers until none remain.

        Args:
            max_callbacks: Guard against self-rescheduling timers

        Returns:
            Number of callbacks fired
        """
        fired = 0
        while fired < max_callbacks:
            due = self.next_due()
            if due is None:
                break
            fired += self.advance(due - self._now)
        if fired >= max_callbacks:
            self.logger.warning(f"run_until_idle stopped after {fired} callbacks")
        return fired

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
