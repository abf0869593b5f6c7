import logging
import time
from typing import Any, Callable, Dict, Optional

from rng_lab.domain.events.event_dispatcher import EventDispatcher
from rng_lab.domain.events.spin_events import SpinEvent, SpinEventType
from rng_lab.domain.history.entities.history_ledger import DEFAULT_CAPACITY, HistoryLedger
from rng_lab.domain.history.services.stats_aggregator import Stats, StatsAggregator
from rng_lab.domain.spin.entities.spin_configuration import BET_STEP, SpinConfiguration
from rng_lab.domain.spin.entities.spin_engine import SpinEngine
from rng_lab.infrastructure.rng.rng_provider import RNGProvider
from rng_lab.infrastructure.scheduling.scheduler import CancellationToken, Scheduler, TimerHandle
from rng_lab.infrastructure.storage.storage import Storage
from .autoplay_scheduler import AutoplayScheduler, DEFAULT_INTERVAL_MS
from .debounced_saver import DebouncedSaver
from .history_repository import HistoryRepository
from .snapshot_exporter import SnapshotExporter, TextSink


class GameSession:
    """
    One player's session: settings, random source, engine, ledger, autoplay
    and persistence.

    The session owns the RNG cursor and the ledger. Ledger changes are
    persisted through a debounced save rather than on every write.
    """
    def __init__(self, session_id: str, scheduler: Scheduler, storage: Storage,
                 rng_provider: Optional[RNGProvider] = None,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 config: Optional[SpinConfiguration] = None, seed: str = "",
                 autoplay_interval_ms: int = DEFAULT_INTERVAL_MS, save_debounce_ms: int = 250,
                 capacity: int = DEFAULT_CAPACITY, clock: Callable[[], float] = time.time):
        """
        Initialize a session and restore any stored history.

        Args:
            session_id: Identifier used in logs and events
            scheduler: Timer source shared by engine, autoplay and saver
            storage: Storage collaborator for the history blob and exports
            rng_provider: Builds random sources from seed strings
            event_dispatcher: Optional dispatcher for session events
            config: Initial settings (defaults: 6 outcomes, bet 10, x5)
            seed: Initial seed text, empty for entropy-backed play
            autoplay_interval_ms: Interval used when autoplay is switched on
            save_debounce_ms: Quiet period before the ledger is written
            capacity: Ledger capacity
            clock: Wall clock for result timestamps
        """
        self.id = session_id
        self.logger = logging.getLogger(f"application.session.{session_id}")
        self.scheduler = scheduler
        self.storage = storage
        self.rng_provider = rng_provider or RNGProvider()
        self.event_dispatcher = event_dispatcher or EventDispatcher()

        self._config = config or SpinConfiguration()
        self._seed = seed or ""
        self.autoplay_interval_ms = max(0, int(autoplay_interval_ms))
        self.closed = False

        self.repository = HistoryRepository(storage)
        self.ledger = HistoryLedger(capacity, self.repository)
        self.ledger.load(self.repository.load())
        self.ledger.add_listener(self._on_ledger_change)

        self.engine = SpinEngine(
            random_source=self.rng_provider.create_source(self._seed),
            scheduler=scheduler,
            ledger=self.ledger,
            event_dispatcher=self.event_dispatcher,
            clock=clock,
            session_id=session_id
        )
        self.autoplay = AutoplayScheduler(self.engine, scheduler, lambda: self._config)
        self.saver = DebouncedSaver(scheduler, self._save_history, save_debounce_ms)
        self.exporter = SnapshotExporter()

        self.logger.info(f"Session initialized - {len(self.ledger)} stored spins, "
                         f"seed={'set' if self._seed else 'none'}, config={self._config}")

    # === Settings ===
    @property
    def config(self) -> SpinConfiguration:
        return self._config

    @property
    def seed(self) -> str:
        return self._seed

    @property
    def win_chance(self) -> float:
        return StatsAggregator.expected_win_chance(self._config.num_outcomes)

    def configure(self, num_outcomes: Any = None, bet_amount: Any = None,
                  payout_multiplier: Any = None, seed: Optional[str] = None,
                  autoplay_interval_ms: Optional[int] = None) -> SpinConfiguration:
        """
        Change settings. Omitted values are left alone; out-of-range values are clamped.

        A new seed restarts the random sequence. Any effective change while
        autoplay runs restarts its timer against the new settings.

        Returns:
            The configuration now in effect
        """
        changes = {}
        config_changes = {
            name: value for name, value in (
                ("num_outcomes", num_outcomes),
                ("bet_amount", bet_amount),
                ("payout_multiplier", payout_multiplier)
            ) if value is not None
        }
        if config_changes:
            new_config = self._config.with_changes(**config_changes)
            if new_config != self._config:
                self._config = new_config
                changes["config"] = new_config.to_dict()

        if seed is not None and seed != self._seed:
            self._seed = seed
            self.engine.set_random_source(self.rng_provider.create_source(seed))
            changes["seed"] = seed

        if autoplay_interval_ms is not None:
            interval = max(0, int(autoplay_interval_ms))
            if interval != self.autoplay_interval_ms:
                self.autoplay_interval_ms = interval
                changes["autoplay_interval_ms"] = interval

        if changes:
            self.logger.debug(f"Settings changed: {changes}")
            self._dispatch(SpinEventType.SETTINGS_CHANGED, changes)
            if self.autoplay.is_running:
                if "autoplay_interval_ms" in changes:
                    self.autoplay.start(self.autoplay_interval_ms)
                else:
                    self.autoplay.restart()

        return self._config

    def bump_bet(self, step: int = BET_STEP) -> SpinConfiguration:
        return self.configure(bet_amount=self._config.bet_amount + step)

    # === Play ===
    def spin(self) -> Optional[TimerHandle]:
        """
        Request one trial with the current settings.

        Returns:
            Resolution timer handle, or None if the request was ignored
        """
        if self.closed:
            self.logger.warning("Attempted to spin on a closed session")
            return None
        return self.engine.request_spin(self._config)

    def start_autoplay(self, interval_ms: Optional[int] = None) -> Optional[CancellationToken]:
        if self.closed:
            self.logger.warning("Attempted to start autoplay on a closed session")
            return None
        if interval_ms is not None:
            self.autoplay_interval_ms = max(0, int(interval_ms))
        elif not self.autoplay_interval_ms:
            self.autoplay_interval_ms = DEFAULT_INTERVAL_MS
        return self.autoplay.start(self.autoplay_interval_ms)

    def stop_autoplay(self):
        self.autoplay.stop()

    def toggle_autoplay(self) -> bool:
        """
        Switch autoplay on or off.

        Returns:
            Whether autoplay is running afterwards
        """
        if self.autoplay.is_running:
            self.stop_autoplay()
        else:
            self.start_autoplay()
        return self.autoplay.is_running

    # === History ===
    def stats(self) -> Stats:
        return StatsAggregator.compute(self.ledger)

    def roi_display(self) -> str:
        return StatsAggregator.format_roi(self.stats())

    def clear_history(self):
        self.ledger.clear()
        self._dispatch(SpinEventType.HISTORY_CLEARED, {})

    def export_snapshot(self) -> Dict[str, Any]:
        return self.exporter.build_snapshot(self.ledger, self._config)

    def copy_snapshot(self, sink: TextSink) -> str:
        return self.exporter.copy_to(sink, self.ledger, self._config)

    def export_history(self) -> str:
        return self.exporter.export_history(self.storage, self.ledger)

    def flush(self):
        """Write any pending ledger save immediately."""
        self.saver.flush()

    def close(self):
        """
        Destroy the session: stop autoplay, discard a pending spin and flush
        the ledger to storage.
        """
        if self.closed:
            return
        self.autoplay.stop()
        self.engine.teardown()
        self.saver.flush()
        self.closed = True
        self.logger.info(f"Session closed - {len(self.ledger)} spins in history")
        self._dispatch(SpinEventType.SESSION_CLOSED, self.stats().to_dict())

    def _on_ledger_change(self, change: str):
        if change == "record":
            self.saver.request()
        elif change == "clear":
            self.saver.cancel()

    def _save_history(self):
        if self.repository.save(self.ledger):
            self._dispatch(SpinEventType.HISTORY_SAVED, {"entries": len(self.ledger)})

    def _dispatch(self, event_type: SpinEventType, data: Dict[str, Any]):
        self.event_dispatcher.dispatch(SpinEvent(
            type=event_type,
            session_id=self.id,
            data=data
        ))
