import logging
from typing import Callable, Iterable, Iterator, List, Optional, Protocol

from rng_lab.domain.spin.entities.spin_result import SpinResult

DEFAULT_CAPACITY = 200

LedgerListener = Callable[[str], None]


class BlobRemover(Protocol):
    def remove(self) -> None:
        ...


class HistoryLedger:
    """
    Bounded record of resolved trials, newest first.

    Recording prepends and then truncates to capacity, so the oldest entry
    is evicted once the ledger is full.
    """
    def __init__(self, capacity: int = DEFAULT_CAPACITY, repository: Optional[BlobRemover] = None):
        """
        Args:
            capacity: Maximum number of retained results
            repository: Persistence collaborator told to drop its blob on clear()
        """
        self.logger = logging.getLogger("domain.history.ledger")
        self.capacity = max(1, capacity)
        self.repository = repository
        self._entries: List[SpinResult] = []
        self._listeners: List[LedgerListener] = []

    def add_listener(self, listener: LedgerListener):
        """Register a callback invoked with "record", "load" or "clear" after each mutation."""
        self._listeners.append(listener)

    def record(self, result: SpinResult):
        self._entries.insert(0, result)
        if len(self._entries) > self.capacity:
            evicted = len(self._entries) - self.capacity
            del self._entries[self.capacity:]
            self.logger.debug(f"Ledger full, evicted {evicted} oldest entries")
        self._notify("record")

    def load(self, results: Iterable[SpinResult]):
        """
        Replace the contents with previously stored results.

        Args:
            results: Results ordered newest first
        """
        self._entries = list(results)[:self.capacity]
        self.logger.debug(f"Ledger loaded with {len(self._entries)} entries")
        self._notify("load")

    def clear(self):
        self._entries.clear()
        if self.repository is not None:
            self.repository.remove()
        self.logger.info("History cleared")
        self._notify("clear")

    @property
    def latest(self) -> Optional[SpinResult]:
        return self._entries[0] if self._entries else None

    def display_number(self, index: int) -> int:
        """Run number shown for the entry at index; the oldest entry is #1."""
        return len(self._entries) - index

    def to_list(self) -> List[dict]:
        return [result.to_dict() for result in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SpinResult]:
        return iter(list(self._entries))

    def __getitem__(self, index):
        return self._entries[index]

    def _notify(self, change: str):
        for listener in list(self._listeners):
            listener(change)
