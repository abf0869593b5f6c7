import logging
import math
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from rng_lab.domain.events.event_dispatcher import EventDispatcher
from rng_lab.domain.events.spin_events import SpinEvent, SpinEventType
from rng_lab.domain.history.entities.history_ledger import HistoryLedger
from rng_lab.infrastructure.rng.seeded_source import SeededRandomSource
from rng_lab.infrastructure.scheduling.scheduler import Scheduler, TimerHandle
from .spin_configuration import SpinConfiguration
from .spin_result import SpinResult

MIN_DELAY_MS = 900
DELAY_SPREAD_MS = 900


class SpinState(Enum):
    IDLE = auto()
    PENDING = auto()
    RESOLVED = auto()


@dataclass(frozen=True)
class PendingSpin:
    """An accepted trial waiting for its resolution timer."""
    config: SpinConfiguration
    roll: int
    delay_ms: int
    seed: str
    requested_at: float


class SpinEngine:
    """
    State machine owning one trial at a time.

    IDLE/RESOLVED --request_spin--> PENDING --timer--> RESOLVED. Requests
    made while PENDING are no-ops. Each accepted trial draws twice from the
    random source, delay first and roll second, so seeded replays line up.
    """
    def __init__(self, random_source: SeededRandomSource, scheduler: Scheduler,
                 ledger: Optional[HistoryLedger] = None,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 clock: Callable[[], float] = time.time, session_id: str = ""):
        """
        Args:
            random_source: Source consumed by every accepted trial
            scheduler: Timer source for the resolution delay
            ledger: Ledger each resolved result is recorded in
            event_dispatcher: Receives SPIN_* events (one is created if omitted)
            clock: Wall clock for result timestamps, epoch seconds
            session_id: Owning session, attached to events and log names
        """
        self.session_id = session_id
        self.logger = logging.getLogger(f"domain.spin.engine.{session_id}" if session_id else "domain.spin.engine")
        self.random_source = random_source
        self.scheduler = scheduler
        self.ledger = ledger
        self.event_dispatcher = event_dispatcher or EventDispatcher()
        self.clock = clock

        self._state = SpinState.IDLE
        self._pending: Optional[PendingSpin] = None
        self._timer: Optional[TimerHandle] = None
        self.last_result: Optional[SpinResult] = None
        self.spins_resolved = 0
        self._torn_down = False

    @property
    def state(self) -> SpinState:
        return self._state

    @property
    def pending(self) -> Optional[PendingSpin]:
        return self._pending

    def is_pending(self) -> bool:
        return self._state is SpinState.PENDING

    def is_ready(self) -> bool:
        """True when a new request would be accepted (IDLE or RESOLVED)."""
        return not self._torn_down and self._state is not SpinState.PENDING

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def set_random_source(self, random_source: SeededRandomSource):
        """
        Swap the random source, e.g. after the seed changed.

        An already accepted trial keeps the roll it drew.
        """
        self.random_source = random_source
        self.logger.debug(f"Random source replaced: {random_source!r}")

    def request_spin(self, config: SpinConfiguration) -> Optional[TimerHandle]:
        """
        Accept a trial unless one is already pending or the engine was torn down.

        Args:
            config: Settings snapshot for this trial

        Returns:
            Handle of the resolution timer, or None if the request was ignored
        """
        if self._torn_down:
            self.logger.debug("Spin requested after teardown, ignoring")
            self._dispatch(SpinEventType.SPIN_REJECTED, {"reason": "torn_down"})
            return None
        if self._state is SpinState.PENDING:
            self.logger.debug("Spin requested while pending, ignoring")
            self._dispatch(SpinEventType.SPIN_REJECTED, {"reason": "pending"})
            return None

        delay_ms = MIN_DELAY_MS + math.floor(self.random_source.next() * DELAY_SPREAD_MS)
        roll = self.random_source.next_index(config.num_outcomes) + 1

        pending = PendingSpin(
            config=config,
            roll=roll,
            delay_ms=delay_ms,
            seed=self.random_source.raw_seed,
            requested_at=self.scheduler.now()
        )
        self._pending = pending
        self._state = SpinState.PENDING
        self._timer = self.scheduler.call_later(delay_ms / 1000, lambda: self._resolve(pending))

        self.logger.debug(f"Spin accepted: outcomes={config.num_outcomes}, bet={config.bet_amount}, "
                          f"delay={delay_ms}ms")
        self._dispatch(SpinEventType.SPIN_REQUESTED, {
            "delay_ms": delay_ms,
            "config": config.to_dict()
        })
        return self._timer

    def teardown(self):
        """
        Cancel an outstanding resolution and refuse further requests.

        Used when the whole session is destroyed.
        """
        self._torn_down = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None:
            self.logger.info("Engine torn down with a pending spin, discarding it")
        self._pending = None
        self._state = SpinState.IDLE

    def _resolve(self, pending: PendingSpin):
        if self._pending is not pending:
            return

        result = SpinResult.resolve(
            roll=pending.roll,
            config=pending.config,
            seed=pending.seed,
            timestamp=self.clock()
        )

        self._pending = None
        self._timer = None
        self._state = SpinState.RESOLVED
        self.last_result = result
        self.spins_resolved += 1

        if self.ledger is not None:
            self.ledger.record(result)

        if result.win:
            self.logger.info(f"Spin won: roll={result.roll}, payout={result.payout} "
                             f"(x{pending.config.payout_multiplier})")
        else:
            self.logger.debug(f"Spin lost: roll={result.roll} of {pending.config.num_outcomes}")

        self._dispatch(SpinEventType.SPIN_RESOLVED, {"result": result})

    def _dispatch(self, event_type: SpinEventType, data):
        self.event_dispatcher.dispatch(SpinEvent(
            type=event_type,
            session_id=self.session_id,
            data=data
        ))
