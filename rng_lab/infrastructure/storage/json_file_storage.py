import os
import json
import logging
from typing import Any, Dict, Optional


class JsonFileStorage:
    """
    File-backed storage: one ``<key>.json`` file per key inside a directory.
    """
    def __init__(self, directory: str, json_formatting: Optional[Dict[str, Any]] = None):
        """
        Initialize the storage directory.

        Args:
            directory: Directory holding the JSON files (created if missing)
            json_formatting: Optional json.dump options (indent, ensure_ascii)
        """
        self.logger = logging.getLogger("infrastructure.storage.file")
        self.directory = directory
        self.json_formatting = {"indent": None, "ensure_ascii": False}
        if json_formatting:
            self.json_formatting.update(json_formatting)

        os.makedirs(self.directory, exist_ok=True)
        self.logger.debug(f"JSON file storage at {self.directory}")

    def _path(self, key: str) -> str:
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not os.path.isfile(path):
            return None

        try:
            with open(path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.warning(f"Could not read {path}: {e}")
            return None

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        temp_path = f"{path}.tmp"
        with open(temp_path, 'w', encoding='utf-8') as file:
            json.dump(value, file, **self.json_formatting)
        os.replace(temp_path, path)
        self.logger.debug(f"Saved '{key}' to {path}")

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            os.remove(path)
            self.logger.debug(f"Removed {path}")
        except FileNotFoundError:
            pass
