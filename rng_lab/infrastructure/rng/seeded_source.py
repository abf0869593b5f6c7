import logging
import math
from typing import Optional

from .strategies.mulberry_rng import Mulberry32RNG, derive_seed
from .strategies.rng_strategy import RNGStrategy


class SeededRandomSource:
    """
    Float source in [0, 1) built from an optional seed string.

    A non-empty seed gives a replayable Mulberry32 sequence; an empty seed
    hands every draw to the supplied entropy strategy.
    """
    def __init__(self, raw_seed: str = "", entropy_strategy: Optional[RNGStrategy] = None):
        """
        Args:
            raw_seed: Seed text; empty means non-deterministic
            entropy_strategy: Generator used when raw_seed is empty
        """
        self.logger = logging.getLogger("infrastructure.rng.source")
        self.raw_seed = raw_seed or ""
        self.draws = 0

        if self.raw_seed:
            self.derived_seed: Optional[int] = derive_seed(self.raw_seed)
            self._strategy = Mulberry32RNG(self.derived_seed)
            self.logger.debug(f"Seeded source from '{self.raw_seed}' -> {self.derived_seed}")
        else:
            if entropy_strategy is None:
                raise ValueError("An entropy strategy is required when no seed is given")
            self.derived_seed = None
            self._strategy = entropy_strategy
            self.logger.debug(f"Unseeded source using {type(entropy_strategy).__name__}")

    @property
    def is_seeded(self) -> bool:
        return self.derived_seed is not None

    def next(self) -> float:
        self.draws += 1
        return self._strategy.next()

    def next_index(self, size: int) -> int:
        """Draw an integer in [0, size) from a single next() call."""
        return math.floor(self.next() * size)

    def __repr__(self) -> str:
        return f"SeededRandomSource(seed={self.raw_seed!r}, draws={self.draws})"
