from typing import Callable, Protocol


class CancellationToken:
    """
    Caller-owned cancellation flag.

    Timers check the token before running, so cancelling is a separate
    step that always happens before any rescheduling.
    """
    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


class TimerHandle(Protocol):
    """Handle to a scheduled callback."""

    def cancel(self) -> None:
        ...

    @property
    def cancelled(self) -> bool:
        ...


class Scheduler(Protocol):
    """Single-threaded timer source used by the engine and autoplay."""

    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """
        Run callback once after delay seconds.

        Args:
            delay: Delay in seconds, negative values are treated as 0
            callback: Zero-argument callable

        Returns:
            Handle that cancels the callback if it has not run yet
        """
        ...
