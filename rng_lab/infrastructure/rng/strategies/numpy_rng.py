import numpy as np
from typing import Optional


class NumpyRNG:
    """
    Entropy-backed play through NumPy's PCG64 ``Generator``.
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Args:
            seed_value: Optional seed; None pulls fresh OS entropy
        """
        self.rng = np.random.default_rng(seed_value)

    def next(self) -> float:
        return float(self.rng.random())

    def seed(self, seed_value: int) -> None:
        self.rng = np.random.default_rng(seed_value)
