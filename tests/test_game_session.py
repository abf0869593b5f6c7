# tests/test_game_session.py
import unittest
import sys
import os
import json
import logging

logging.disable(logging.CRITICAL)

# Add repo root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from rng_lab.application.session.game_session import GameSession
from rng_lab.application.session.session_factory import SessionFactory
from rng_lab.domain.events.event_dispatcher import EventDispatcher
from rng_lab.domain.events.spin_events import SpinEventType
from rng_lab.domain.spin.entities.spin_configuration import SpinConfiguration
from rng_lab.infrastructure.scheduling.virtual_scheduler import VirtualScheduler
from rng_lab.infrastructure.storage.json_file_storage import JsonFileStorage
from rng_lab.infrastructure.storage.memory_storage import InMemoryStorage
from rng_lab.infrastructure.storage.storage import EXPORT_KEY, HISTORY_KEY


class FakeClipboard:
    def __init__(self):
        self.text = None

    def write_text(self, text):
        self.text = text


class TestGameSession(unittest.TestCase):

    def setUp(self):
        self.scheduler = VirtualScheduler()
        self.storage = InMemoryStorage()
        self.dispatcher = EventDispatcher()
        self.events = []
        self.dispatcher.register_all(self.events.append)

    def make_session(self, **kwargs):
        kwargs.setdefault("seed", "session-seed")
        return GameSession("test_session", self.scheduler, self.storage,
                           event_dispatcher=self.dispatcher, **kwargs)

    def play(self, session, count):
        rolls = []
        for _ in range(count):
            session.spin()
            self.scheduler.run_until_idle()
            rolls.append(session.engine.last_result.roll)
        return rolls

    def event_types(self):
        return [event.type for event in self.events]

    def test_defaults(self):
        session = self.make_session(seed="")
        self.assertEqual(session.config, SpinConfiguration(6, 10, 5))
        self.assertEqual(session.seed, "")
        self.assertAlmostEqual(session.win_chance, 1 / 6)
        self.assertEqual(session.roi_display(), "—")
        self.assertEqual(len(session.ledger), 0)

    def test_unseeded_session_plays(self):
        session = self.make_session(seed="")
        self.play(session, 3)
        self.assertEqual(len(session.ledger), 3)
        self.assertFalse(session.engine.random_source.is_seeded)

    def test_double_spin_records_once(self):
        session = self.make_session()
        self.assertIsNotNone(session.spin())
        self.assertIsNone(session.spin())
        self.scheduler.run_until_idle()
        self.assertEqual(len(session.ledger), 1)

    def test_configure_clamps(self):
        session = self.make_session()
        config = session.configure(num_outcomes=50, bet_amount=-5, payout_multiplier="lots")
        self.assertEqual((config.num_outcomes, config.bet_amount, config.payout_multiplier), (12, 1, 1))
        self.assertIn(SpinEventType.SETTINGS_CHANGED, self.event_types())

    def test_configure_without_change_dispatches_nothing(self):
        session = self.make_session()
        session.configure(num_outcomes=6, seed="session-seed")
        self.assertNotIn(SpinEventType.SETTINGS_CHANGED, self.event_types())

    def test_bump_bet(self):
        session = self.make_session()
        self.assertEqual(session.bump_bet().bet_amount, 20)
        self.assertEqual(session.bump_bet(5).bet_amount, 25)

    def test_pending_spin_keeps_requested_settings(self):
        session = self.make_session()
        session.spin()
        session.configure(num_outcomes=2, bet_amount=100)
        self.scheduler.run_until_idle()
        result = session.ledger.latest
        self.assertEqual(result.config.num_outcomes, 6)
        self.assertEqual(result.bet, 10)

    def test_same_seed_replays_sequence(self):
        first = self.play(self.make_session(seed="replay"), 10)

        other_scheduler = VirtualScheduler()
        other = GameSession("other", other_scheduler, InMemoryStorage(), seed="replay")
        rolls = []
        for _ in range(10):
            other.spin()
            other_scheduler.run_until_idle()
            rolls.append(other.engine.last_result.roll)
        self.assertEqual(rolls, first)

    def test_seed_change_restarts_sequence(self):
        session = self.make_session(seed="x")
        first = self.play(session, 8)
        session.configure(seed="y")
        self.play(session, 3)
        session.configure(seed="x")
        self.assertEqual(self.play(session, 8), first)

    def test_results_carry_seed(self):
        session = self.make_session(seed="tagged")
        self.play(session, 1)
        self.assertEqual(session.ledger.latest.to_dict()["settings"]["seed"], "tagged")

    def test_history_persisted_after_debounce(self):
        session = self.make_session(save_debounce_ms=5000)
        for _ in range(3):
            session.spin()
            self.scheduler.advance(2.0)
        self.assertEqual(len(session.ledger), 3)
        self.assertNotIn(HISTORY_KEY, self.storage.items)

        self.scheduler.run_until_idle()
        self.assertEqual(self.storage.save_count, 1)
        stored = json.loads(self.storage.items[HISTORY_KEY])
        self.assertEqual(len(stored), 3)
        self.assertIn(SpinEventType.HISTORY_SAVED, self.event_types())

    def test_history_restored_on_start(self):
        session = self.make_session()
        self.play(session, 4)
        expected = session.ledger.to_list()
        session.close()

        restored = self.make_session()
        self.assertEqual(restored.ledger.to_list(), expected)

    def test_corrupted_history_starts_empty(self):
        self.storage.items[HISTORY_KEY] = "{definitely not json"
        session = self.make_session()
        self.assertEqual(len(session.ledger), 0)
        self.play(session, 1)
        session.flush()
        self.assertEqual(len(json.loads(self.storage.items[HISTORY_KEY])), 1)

    def test_non_finite_history_entries_are_dropped(self):
        self.storage.items[HISTORY_KEY] = (
            '[{"roll": 1, "win": false, "bet": 1e400, "payout": 0, "time": 1000,'
            '  "settings": {"numOutcomes": 6}},'
            ' {"roll": 2, "win": false, "bet": 10, "payout": 0, "time": NaN,'
            '  "settings": {"numOutcomes": 6}}]'
        )
        session = self.make_session()
        self.assertEqual(len(session.ledger), 0)
        self.play(session, 1)
        session.flush()
        self.assertEqual(len(json.loads(self.storage.items[HISTORY_KEY])), 1)

    def test_clear_history(self):
        session = self.make_session(save_debounce_ms=5000)
        session.spin()
        self.scheduler.advance(2.0)
        self.assertTrue(session.saver.is_pending)

        session.clear_history()
        self.scheduler.run_until_idle()
        self.assertEqual(len(session.ledger), 0)
        self.assertNotIn(HISTORY_KEY, self.storage.items)
        self.assertIn(SpinEventType.HISTORY_CLEARED, self.event_types())

    def test_clear_removes_previously_saved_blob(self):
        session = self.make_session()
        self.play(session, 2)
        self.assertIn(HISTORY_KEY, self.storage.items)
        session.clear_history()
        self.assertNotIn(HISTORY_KEY, self.storage.items)

    def test_stats(self):
        session = self.make_session()
        self.play(session, 20)
        stats = session.stats()
        self.assertEqual(stats.total, 20)
        self.assertEqual(stats.spent, 200)
        self.assertEqual(stats.earned, stats.wins * 50)
        self.assertTrue(session.roi_display().endswith("%"))

    def test_snapshot_and_exports(self):
        session = self.make_session()
        session.configure(num_outcomes=4)
        self.play(session, 2)

        snapshot = session.export_snapshot()
        self.assertEqual(snapshot["settings"], {"numOutcomes": 4})
        self.assertEqual(len(snapshot["history"]), 2)

        clipboard = FakeClipboard()
        session.copy_snapshot(clipboard)
        self.assertEqual(json.loads(clipboard.text), snapshot)

        self.assertEqual(session.export_history(), EXPORT_KEY)
        self.assertEqual(json.loads(self.storage.items[EXPORT_KEY]), snapshot["history"])

    def test_close(self):
        session = self.make_session(save_debounce_ms=5000)
        self.play(session, 1)
        session.start_autoplay(1000)
        self.scheduler.advance(1.0)
        self.assertTrue(session.engine.is_pending())

        session.close()
        self.assertTrue(session.closed)
        self.assertFalse(session.autoplay.is_running)
        self.assertFalse(session.engine.is_pending())
        self.assertEqual(len(json.loads(self.storage.items[HISTORY_KEY])), 1)

        self.scheduler.run_until_idle()
        self.assertEqual(len(session.ledger), 1)
        self.assertIsNone(session.spin())
        self.assertIsNone(session.start_autoplay())
        self.assertIn(SpinEventType.SESSION_CLOSED, self.event_types())

        session.close()
        self.assertEqual(self.event_types().count(SpinEventType.SESSION_CLOSED), 1)


class TestSessionFactory(unittest.TestCase):

    def test_create_from_config(self):
        factory = SessionFactory(VirtualScheduler())
        session = factory.create_session_from_config({
            "session": {"num_outcomes": 8, "bet_amount": 25, "payout_multiplier": 7,
                        "seed": "factory", "rng_strategy": "numpy", "autoplay_interval_ms": 2000},
            "storage": {"backend": "memory"}
        })
        self.assertTrue(session.id.startswith("session_"))
        self.assertEqual(session.config, SpinConfiguration(8, 25, 7))
        self.assertEqual(session.seed, "factory")
        self.assertEqual(session.autoplay_interval_ms, 2000)
        self.assertIsInstance(session.storage, InMemoryStorage)

    def test_file_storage(self):
        import tempfile
        with tempfile.TemporaryDirectory() as temp_dir:
            factory = SessionFactory(VirtualScheduler())
            storage = factory.create_storage({"backend": "file", "directory": temp_dir})
            self.assertIsInstance(storage, JsonFileStorage)

    def test_unknown_backend_falls_back_to_memory(self):
        storage = SessionFactory(VirtualScheduler()).create_storage({"backend": "cloud"})
        self.assertIsInstance(storage, InMemoryStorage)

    def test_explicit_storage_and_id(self):
        storage = InMemoryStorage()
        session = SessionFactory(VirtualScheduler()).create_session_from_config(
            {}, storage=storage, session_id="fixed")
        self.assertEqual(session.id, "fixed")
        self.assertIs(session.storage, storage)
        self.assertEqual(session.config, SpinConfiguration())


if __name__ == "__main__":
    unittest.main()
