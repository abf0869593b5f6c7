import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .spin_configuration import SpinConfiguration


@dataclass(frozen=True)
class SpinResult:
    """
    Outcome of one resolved trial. Never mutated after creation.
    """
    roll: int
    win: bool
    bet: int
    payout: int
    config: SpinConfiguration
    seed: str = ""
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def resolve(cls, roll: int, config: SpinConfiguration, seed: str = "",
                timestamp: Optional[float] = None) -> "SpinResult":
        """
        Build the result for a roll under a configuration snapshot.

        The trial wins only when the roll lands on the highest outcome.

        Args:
            roll: Drawn outcome in [1, config.num_outcomes]
            config: Configuration captured when the trial was requested
            seed: Seed text the source was built from
            timestamp: Resolution time in epoch seconds (now if omitted)

        Returns:
            New SpinResult
        """
        win = roll == config.lucky_outcome
        return cls(
            roll=roll,
            win=win,
            bet=config.bet_amount,
            payout=config.win_payout if win else 0,
            config=config,
            seed=seed,
            timestamp=time.time() if timestamp is None else timestamp
        )

    @property
    def profit(self) -> int:
        return self.payout - self.bet

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored history entry shape."""
        settings = self.config.to_dict()
        settings["seed"] = self.seed
        return {
            "time": int(round(self.timestamp * 1000)),
            "roll": self.roll,
            "win": self.win,
            "bet": self.bet,
            "payout": self.payout,
            "settings": settings
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpinResult":
        """
        Rebuild a result from a stored history entry.

        Raises:
            TypeError, KeyError, ValueError, OverflowError: If the entry is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"History entry must be an object, got {type(data).__name__}")

        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            raise TypeError("History entry settings must be an object")

        bet = _finite_int(data["bet"], "bet")
        config = SpinConfiguration(
            num_outcomes=_finite_int(settings["numOutcomes"], "numOutcomes"),
            bet_amount=_finite_int(settings.get("betAmount", bet), "betAmount"),
            payout_multiplier=_finite_int(settings.get("payoutMultiplier", 1), "payoutMultiplier")
        )
        roll = _finite_int(data["roll"], "roll")
        if not 1 <= roll <= config.num_outcomes:
            raise ValueError(f"Roll {roll} outside 1..{config.num_outcomes}")

        return cls(
            roll=roll,
            win=bool(data["win"]),
            bet=bet,
            payout=_finite_int(data.get("payout", 0) or 0, "payout"),
            config=config,
            seed=str(settings.get("seed", "") or ""),
            timestamp=_finite_float(data["time"], "time") / 1000
        )


def _finite_float(value: Any, field_name: str) -> float:
    """
    Raises:
        TypeError, ValueError: If value is not a finite number
    """
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field_name} is not a finite number: {value!r}")
    return number


def _finite_int(value: Any, field_name: str) -> int:
    if isinstance(value, int):
        return value
    return int(_finite_float(value, field_name))
