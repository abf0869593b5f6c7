import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

MIN_OUTCOMES = 2
MAX_OUTCOMES = 12
MIN_BET = 1
BET_STEP = 10
MIN_MULTIPLIER = 1
MAX_MULTIPLIER = 20


def clamp_int(value: Any, low: int, high: Optional[int] = None) -> int:
    """
    Coerce raw input to an int inside [low, high].

    Non-numeric, NaN or infinite-without-upper-bound input falls back to low.

    Args:
        value: Raw input (int, float, numeric string, ...)
        low: Lower bound, also the fallback
        high: Optional upper bound

    Returns:
        Clamped integer
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low

    if math.isnan(number):
        return low
    if high is not None:
        number = min(number, high)
    if math.isinf(number):
        return low
    return max(low, math.floor(number))


@dataclass(frozen=True)
class SpinConfiguration:
    """
    Immutable snapshot of the settings a trial is played with.

    Values are clamped on construction, so every instance is valid.
    """
    num_outcomes: int = 6
    bet_amount: int = 10
    payout_multiplier: int = 5

    def __post_init__(self):
        object.__setattr__(self, "num_outcomes", clamp_int(self.num_outcomes, MIN_OUTCOMES, MAX_OUTCOMES))
        object.__setattr__(self, "bet_amount", clamp_int(self.bet_amount, MIN_BET))
        object.__setattr__(self, "payout_multiplier",
                           clamp_int(self.payout_multiplier, MIN_MULTIPLIER, MAX_MULTIPLIER))

    @property
    def lucky_outcome(self) -> int:
        """The single winning outcome: always the highest one."""
        return self.num_outcomes

    @property
    def win_chance(self) -> float:
        return 1 / self.num_outcomes

    @property
    def win_payout(self) -> int:
        return self.bet_amount * self.payout_multiplier

    def with_changes(self, **changes) -> "SpinConfiguration":
        """Return a copy with some fields replaced (and clamped)."""
        return replace(self, **changes)

    def with_bet_increment(self, step: int = BET_STEP) -> "SpinConfiguration":
        return self.with_changes(bet_amount=self.bet_amount + step)

    def to_dict(self) -> Dict[str, int]:
        return {
            "numOutcomes": self.num_outcomes,
            "betAmount": self.bet_amount,
            "payoutMultiplier": self.payout_multiplier
        }
