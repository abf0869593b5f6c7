import logging
from typing import Callable, Optional

from rng_lab.infrastructure.scheduling.scheduler import Scheduler, TimerHandle


class DebouncedSaver:
    """
    Coalesces bursts of save requests into one call after a quiet period.
    """
    def __init__(self, scheduler: Scheduler, action: Callable[[], None], delay_ms: int = 250):
        """
        Args:
            scheduler: Timer source
            action: Save callable
            delay_ms: Quiet period; 0 saves on the next scheduler turn
        """
        self.logger = logging.getLogger("application.session.saver")
        self.scheduler = scheduler
        self.action = action
        self.delay_ms = max(0, delay_ms)
        self._timer: Optional[TimerHandle] = None
        self.saves = 0

    @property
    def is_pending(self) -> bool:
        return self._timer is not None

    def request(self):
        self.cancel()
        self._timer = self.scheduler.call_later(self.delay_ms / 1000, self._run)

    def flush(self):
        """Run a pending save now."""
        if self._timer is not None:
            self.cancel()
            self._run()

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run(self):
        self._timer = None
        self.saves += 1
        self.logger.debug(f"Running debounced save #{self.saves}")
        self.action()
