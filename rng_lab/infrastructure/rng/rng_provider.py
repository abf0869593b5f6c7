import logging
from typing import Optional, Dict, Any

from .seeded_source import SeededRandomSource
from .strategies.mersenne_rng import MersenneTwisterRNG
from .strategies.mulberry_rng import Mulberry32RNG
from .strategies.numpy_rng import NumpyRNG
from .strategies.rng_strategy import RNGStrategy


class RNGProvider:
    """
    Factory for Random Number Generator strategies and seeded sources.
    """
    def __init__(self, entropy_strategy: str = "mersenne"):
        """
        Initialize the RNG provider.

        Args:
            entropy_strategy: Strategy backing unseeded sources ("mersenne", "numpy")
        """
        self.logger = logging.getLogger("infrastructure.rng.provider")
        self.entropy_strategy = entropy_strategy.lower()
        if self.entropy_strategy not in ("mersenne", "numpy"):
            self.logger.error(f"Unknown entropy strategy: {entropy_strategy}")
            raise ValueError(f"Unknown entropy strategy: {entropy_strategy}")

    def get_rng(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        """
        Create a RNG strategy instance by name.

        Args:
            strategy_name: Name of the RNG strategy ("mulberry32", "mersenne", "numpy")
            seed: Optional seed value for the RNG

        Returns:
            A new instance of the requested RNG strategy

        Raises:
            ValueError: If the strategy name is unknown
        """
        strategy_name = strategy_name.lower()

        if strategy_name == "mulberry32":
            self.logger.debug(f"Creating Mulberry32 RNG with seed: {seed}")
            return Mulberry32RNG(seed or 0)
        elif strategy_name == "mersenne":
            self.logger.debug(f"Creating MersenneTwister RNG with seed: {seed}")
            return MersenneTwisterRNG(seed)
        elif strategy_name == "numpy":
            self.logger.debug(f"Creating NumPy RNG with seed: {seed}")
            return NumpyRNG(seed)
        else:
            self.logger.error(f"Unknown RNG strategy: {strategy_name}")
            raise ValueError(f"Unknown RNG strategy: {strategy_name}")

    def create_source(self, raw_seed: str = "") -> SeededRandomSource:
        """
        Build a fresh source for a seed string. Each call restarts the sequence.

        Args:
            raw_seed: Seed text, empty for entropy-backed play

        Returns:
            A new SeededRandomSource
        """
        if raw_seed:
            return SeededRandomSource(raw_seed)
        return SeededRandomSource("", self.get_rng(self.entropy_strategy))

    def create_from_config(self, config: Dict[str, Any]) -> SeededRandomSource:
        """
        Create a source from a configuration dictionary.

        Example config:
            {"seed": "lucky", "rng_strategy": "numpy"}
        """
        strategy = config.get("rng_strategy")
        if strategy and strategy.lower() != self.entropy_strategy:
            return RNGProvider(strategy).create_source(config.get("seed", "") or "")
        return self.create_source(config.get("seed", "") or "")

    @staticmethod
    def get_available_strategies() -> Dict[str, str]:
        return {
            "mulberry32": "Mulberry32 (deterministic, used for seeded play)",
            "mersenne": "Mersenne Twister (Python's default random generator)",
            "numpy": "NumPy PCG64 generator"
        }
