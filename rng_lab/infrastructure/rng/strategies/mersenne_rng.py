import random
from typing import Optional


class MersenneTwisterRNG:
    """
    Entropy-backed play through Python's Mersenne Twister.

    Without a seed the instance is seeded from OS entropy, so every unseeded
    session gets its own sequence.
    """
    def __init__(self, seed_value: Optional[int] = None):
        # Own instance; the module-level generator is never touched
        self._random = random.Random(seed_value)

    def next(self) -> float:
        return self._random.random()

    def seed(self, seed_value: int) -> None:
        self._random.seed(seed_value)
