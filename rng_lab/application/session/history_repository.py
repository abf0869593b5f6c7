import logging
from typing import Iterable, List

from rng_lab.domain.spin.entities.spin_result import SpinResult
from rng_lab.infrastructure.storage.storage import HISTORY_KEY, Storage


class HistoryRepository:
    """
    Reads and writes the ledger blob through a Storage collaborator.

    Anything unreadable comes back as "no history" rather than an error.
    """
    def __init__(self, storage: Storage, key: str = HISTORY_KEY):
        self.logger = logging.getLogger("application.session.repository")
        self.storage = storage
        self.key = key

    def load(self) -> List[SpinResult]:
        """
        Load stored results, newest first.

        Returns:
            Parsed results; empty when the blob is missing or not a list.
            Entries that fail to parse are skipped.
        """
        try:
            blob = self.storage.load(self.key)
        except Exception as e:
            self.logger.warning(f"Failed to read history '{self.key}': {e}")
            return []

        if blob is None:
            return []
        if not isinstance(blob, list):
            self.logger.warning(f"Stored history '{self.key}' is not a list, ignoring it")
            return []

        results = []
        skipped = 0
        for entry in blob:
            try:
                results.append(SpinResult.from_dict(entry))
            except (TypeError, KeyError, ValueError, OverflowError) as e:
                skipped += 1
                self.logger.debug(f"Skipping malformed history entry: {e}")

        if skipped:
            self.logger.warning(f"Skipped {skipped} malformed history entries")
        self.logger.debug(f"Loaded {len(results)} history entries from '{self.key}'")
        return results

    def save(self, results: Iterable[SpinResult]) -> bool:
        """
        Persist results. Storage failures are logged, not raised.

        Returns:
            True if the write succeeded
        """
        try:
            payload = [result.to_dict() for result in results]
            self.storage.save(self.key, payload)
        except Exception as e:
            self.logger.error(f"Failed to save history '{self.key}': {e}")
            return False
        self.logger.debug(f"Saved {len(payload)} history entries to '{self.key}'")
        return True

    def remove(self):
        try:
            self.storage.remove(self.key)
        except Exception as e:
            self.logger.error(f"Failed to remove history '{self.key}': {e}")
