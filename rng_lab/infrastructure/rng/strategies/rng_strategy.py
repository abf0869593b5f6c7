from typing import Protocol


class RNGStrategy(Protocol):
    """Protocol defining the interface for random number generators."""

    def next(self) -> float:
        """
        Get the next float in the range [0, 1).

        Returns:
            Random float, 0 inclusive, 1 exclusive
        """
        ...

    def seed(self, seed_value: int) -> None:
        """Restart the sequence from seed_value."""
        ...
