import logging
from typing import Callable, Optional

from rng_lab.domain.events.spin_events import SpinEvent, SpinEventType
from rng_lab.domain.spin.entities.spin_configuration import SpinConfiguration
from rng_lab.domain.spin.entities.spin_engine import SpinEngine
from rng_lab.infrastructure.scheduling.scheduler import CancellationToken, Scheduler, TimerHandle

AUTOPLAY_INTERVALS_MS = (0, 1200, 2000, 4000)
DEFAULT_INTERVAL_MS = 1200


class AutoplayScheduler:
    """
    Periodic trigger that asks the engine for a trial every interval.

    A tick that lands while the engine is pending is dropped, not deferred.
    Every start() cancels the previous run's token before it schedules
    anything, so a superseded timer can never fire a trial.
    """
    def __init__(self, engine: SpinEngine, scheduler: Scheduler,
                 config_provider: Callable[[], SpinConfiguration]):
        """
        Args:
            engine: Engine receiving the trial requests
            scheduler: Timer source
            config_provider: Returns the current configuration at tick time
        """
        self.logger = logging.getLogger("application.session.autoplay")
        self.engine = engine
        self.scheduler = scheduler
        self.config_provider = config_provider

        self.interval_ms = 0
        self._token: Optional[CancellationToken] = None
        self._timer: Optional[TimerHandle] = None
        self.ticks_fired = 0
        self.ticks_dropped = 0

    @property
    def is_running(self) -> bool:
        return self._token is not None and not self._token.cancelled

    def start(self, interval_ms: int = DEFAULT_INTERVAL_MS) -> Optional[CancellationToken]:
        """
        Start (or restart) autoplay.

        Args:
            interval_ms: Tick interval in milliseconds; 0 or less stops autoplay

        Returns:
            Token for this run, or None when the interval turned autoplay off
        """
        if interval_ms is None or interval_ms <= 0:
            self.stop()
            return None
        if self.engine.is_torn_down:
            self.logger.warning("Engine torn down, autoplay not started")
            return None

        self._cancel_current()

        self.interval_ms = int(interval_ms)
        token = CancellationToken()
        self._token = token
        self._schedule_tick(token)

        self.logger.info(f"Autoplay started every {self.interval_ms}ms")
        self._dispatch(SpinEventType.AUTOPLAY_STARTED, {"interval_ms": self.interval_ms})
        return token

    def restart(self) -> Optional[CancellationToken]:
        """Restart against the current configuration if running."""
        if not self.is_running:
            return None
        self.logger.debug("Configuration changed, restarting autoplay timer")
        return self.start(self.interval_ms)

    def stop(self):
        """Stop autoplay. No trial is requested by this scheduler after stop() returns."""
        was_running = self.is_running
        self._cancel_current()
        self._set_stopped()
        if was_running:
            self.logger.info("Autoplay stopped")
            self._dispatch(SpinEventType.AUTOPLAY_STOPPED, {
                "ticks_fired": self.ticks_fired,
                "ticks_dropped": self.ticks_dropped
            })

    def _schedule_tick(self, token: CancellationToken):
        self._timer = self.scheduler.call_later(self.interval_ms / 1000, lambda: self._tick(token))

    def _tick(self, token: CancellationToken):
        if token.cancelled or token is not self._token:
            return
        if self.engine.is_torn_down:
            self.logger.info("Engine torn down, stopping autoplay")
            self.stop()
            return

        if self.engine.is_ready():
            self.ticks_fired += 1
            self.engine.request_spin(self.config_provider())
        else:
            self.ticks_dropped += 1
            self.logger.debug("Autoplay tick dropped, spin still pending")
            self._dispatch(SpinEventType.AUTOPLAY_TICK_DROPPED, {})

        # A handler reacting to the spin may have stopped or restarted us
        if not token.cancelled and token is self._token:
            self._schedule_tick(token)

    def _cancel_current(self):
        if self._token is not None:
            self._token.cancel()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None

    def _set_stopped(self):
        self._token = None
        self.interval_ms = 0

    def _dispatch(self, event_type: SpinEventType, data):
        self.engine.event_dispatcher.dispatch(SpinEvent(
            type=event_type,
            session_id=self.engine.session_id,
            data=data
        ))
