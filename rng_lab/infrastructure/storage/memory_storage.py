import json
import logging
from typing import Any, Dict, Optional


class InMemoryStorage:
    """
    Storage kept in a dict of JSON strings, the way a browser keeps
    localStorage values as text.
    """
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        """
        Args:
            initial: Optional raw text per key, e.g. to simulate a corrupted entry
        """
        self.logger = logging.getLogger("infrastructure.storage.memory")
        self.items: Dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[Any]:
        raw = self.items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Unreadable value under '{key}': {e}")
            return None

    def save(self, key: str, value: Any) -> None:
        self.items[key] = json.dumps(value, ensure_ascii=False)
        self.save_count += 1

    def remove(self, key: str) -> None:
        self.items.pop(key, None)
