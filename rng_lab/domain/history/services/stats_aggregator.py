from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from rng_lab.domain.spin.entities.spin_result import SpinResult

ROI_PLACEHOLDER = "—"


@dataclass(frozen=True)
class Stats:
    """Summary derived from the ledger on demand; never stored."""
    total: int = 0
    wins: int = 0
    spent: int = 0
    earned: int = 0
    roi: Optional[float] = None  # None when nothing was spent

    @property
    def win_rate(self) -> Optional[float]:
        return self.wins / self.total if self.total else None

    @property
    def net(self) -> int:
        return self.earned - self.spent

    @property
    def return_to_player(self) -> Optional[float]:
        return self.earned / self.spent if self.spent > 0 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "wins": self.wins,
            "spent": self.spent,
            "earned": self.earned,
            "roi": self.roi,
            "win_rate": self.win_rate,
            "net": self.net
        }


class StatsAggregator:
    """Pure aggregation over ledger contents."""

    @staticmethod
    def compute(ledger: Iterable[SpinResult]) -> Stats:
        """
        Summarize a ledger.

        Args:
            ledger: Any iterable of SpinResult (a HistoryLedger included)

        Returns:
            Stats; roi is None for an empty or zero-spend ledger
        """
        total = wins = spent = earned = 0
        for result in ledger:
            total += 1
            if result.win:
                wins += 1
            spent += result.bet or 0
            earned += result.payout or 0

        roi = (earned - spent) / spent if spent > 0 else None
        return Stats(total=total, wins=wins, spent=spent, earned=earned, roi=roi)

    @staticmethod
    def format_roi(stats: Stats) -> str:
        """Render ROI as a percentage with two decimals, or a dash when undefined."""
        if stats.roi is None:
            return ROI_PLACEHOLDER
        return f"{stats.roi * 100:.2f}%"

    @staticmethod
    def expected_win_chance(num_outcomes: int) -> float:
        return 1 / num_outcomes


def compute(ledger: Iterable[SpinResult]) -> Stats:
    return StatsAggregator.compute(ledger)
