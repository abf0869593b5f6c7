# tests/test_history.py
import unittest
import sys
import os
import logging

logging.disable(logging.CRITICAL)

# Add repo root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from rng_lab.domain.history.entities.history_ledger import HistoryLedger
from rng_lab.domain.history.services.stats_aggregator import ROI_PLACEHOLDER, Stats, StatsAggregator, compute
from rng_lab.domain.spin.entities.spin_configuration import SpinConfiguration
from rng_lab.domain.spin.entities.spin_result import SpinResult


def make_result(roll, num_outcomes=6, bet=10, multiplier=5, timestamp=0.0):
    return SpinResult.resolve(roll, SpinConfiguration(num_outcomes, bet, multiplier), timestamp=timestamp)


class RecordingRemover:
    def __init__(self):
        self.removed = 0

    def remove(self):
        self.removed += 1


class TestHistoryLedger(unittest.TestCase):

    def test_newest_first(self):
        ledger = HistoryLedger()
        first = make_result(1, timestamp=1.0)
        second = make_result(2, timestamp=2.0)
        ledger.record(first)
        ledger.record(second)
        self.assertIs(ledger.latest, second)
        self.assertEqual(list(ledger), [second, first])

    def test_capacity_evicts_oldest(self):
        ledger = HistoryLedger()
        for i in range(250):
            ledger.record(make_result(1, timestamp=float(i)))
        self.assertEqual(len(ledger), 200)
        self.assertEqual(ledger[0].timestamp, 249.0)
        self.assertEqual(ledger[199].timestamp, 50.0)

    def test_custom_capacity(self):
        ledger = HistoryLedger(capacity=3)
        for i in range(5):
            ledger.record(make_result(1, timestamp=float(i)))
        self.assertEqual([r.timestamp for r in ledger], [4.0, 3.0, 2.0])

    def test_load_truncates(self):
        ledger = HistoryLedger(capacity=2)
        ledger.load([make_result(1, timestamp=3.0), make_result(1, timestamp=2.0), make_result(1, timestamp=1.0)])
        self.assertEqual([r.timestamp for r in ledger], [3.0, 2.0])

    def test_clear_removes_stored_blob(self):
        remover = RecordingRemover()
        ledger = HistoryLedger(repository=remover)
        ledger.record(make_result(1))
        ledger.clear()
        self.assertEqual(len(ledger), 0)
        self.assertIsNone(ledger.latest)
        self.assertEqual(remover.removed, 1)

    def test_display_number(self):
        ledger = HistoryLedger()
        for i in range(3):
            ledger.record(make_result(1, timestamp=float(i)))
        self.assertEqual(ledger.display_number(0), 3)
        self.assertEqual(ledger.display_number(2), 1)

    def test_listeners(self):
        changes = []
        ledger = HistoryLedger()
        ledger.add_listener(changes.append)
        ledger.load([])
        ledger.record(make_result(1))
        ledger.clear()
        self.assertEqual(changes, ["load", "record", "clear"])

    def test_to_list(self):
        ledger = HistoryLedger()
        ledger.record(make_result(6, timestamp=1.0))
        entries = ledger.to_list()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0]["roll"], 6)
        self.assertTrue(entries[0]["win"])
        self.assertEqual(entries[0]["payout"], 50)


class TestStatsAggregator(unittest.TestCase):

    def test_empty(self):
        stats = StatsAggregator.compute([])
        self.assertEqual(stats, Stats())
        self.assertIsNone(stats.roi)
        self.assertIsNone(stats.win_rate)
        self.assertEqual(StatsAggregator.format_roi(stats), ROI_PLACEHOLDER)

    def test_totals(self):
        results = [make_result(6), make_result(1), make_result(2), make_result(3)]
        stats = compute(results)
        self.assertEqual(stats.total, 4)
        self.assertEqual(stats.wins, 1)
        self.assertEqual(stats.spent, 40)
        self.assertEqual(stats.earned, 50)
        self.assertAlmostEqual(stats.roi, 0.25)
        self.assertEqual(stats.net, 10)
        self.assertAlmostEqual(stats.win_rate, 0.25)
        self.assertEqual(StatsAggregator.format_roi(stats), "25.00%")

    def test_all_losses(self):
        stats = compute([make_result(1), make_result(2)])
        self.assertEqual(stats.roi, -1.0)
        self.assertEqual(StatsAggregator.format_roi(stats), "-100.00%")

    def test_over_ledger(self):
        ledger = HistoryLedger()
        ledger.record(make_result(6, bet=20, multiplier=2))
        stats = StatsAggregator.compute(ledger)
        self.assertEqual((stats.spent, stats.earned), (20, 40))
        self.assertAlmostEqual(stats.return_to_player, 2.0)

    def test_format_roi_rounding(self):
        self.assertEqual(StatsAggregator.format_roi(Stats(roi=1 / 3)), "33.33%")

    def test_expected_win_chance(self):
        self.assertAlmostEqual(StatsAggregator.expected_win_chance(6), 1 / 6)
        self.assertAlmostEqual(StatsAggregator.expected_win_chance(12), 1 / 12)


if __name__ == "__main__":
    unittest.main()
