from typing import Any, Optional, Protocol

HISTORY_KEY = "rng_history_v1"
EXPORT_KEY = "rng_history_export"


class Storage(Protocol):
    """Key/value store for JSON-serializable blobs."""

    def load(self, key: str) -> Optional[Any]:
        """
        Load the value stored under key.

        Returns:
            Decoded JSON value, or None when missing or unreadable
        """
        ...

    def save(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
