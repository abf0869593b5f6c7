import json
import logging
from typing import Any, Dict, Optional, Protocol

from rng_lab.domain.history.entities.history_ledger import HistoryLedger
from rng_lab.domain.spin.entities.spin_configuration import SpinConfiguration
from rng_lab.infrastructure.storage.storage import EXPORT_KEY, Storage


class TextSink(Protocol):
    """Clipboard-like collaborator."""

    def write_text(self, text: str) -> None:
        ...


class SnapshotExporter:
    """
    Produces export structures; delivering them is the caller's business.
    """
    def __init__(self, json_formatting: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger("application.session.exporter")
        self.json_formatting = {"ensure_ascii": False}
        if json_formatting:
            self.json_formatting.update(json_formatting)

    def build_snapshot(self, ledger: HistoryLedger, config: SpinConfiguration) -> Dict[str, Any]:
        return {
            "history": ledger.to_list(),
            "settings": {"numOutcomes": config.num_outcomes}
        }

    def to_json(self, ledger: HistoryLedger, config: SpinConfiguration) -> str:
        return json.dumps(self.build_snapshot(ledger, config), **self.json_formatting)

    def copy_to(self, sink: TextSink, ledger: HistoryLedger, config: SpinConfiguration) -> str:
        """
        Hand the JSON snapshot to a clipboard-like sink.

        Returns:
            The text that was written
        """
        text = self.to_json(ledger, config)
        sink.write_text(text)
        self.logger.info(f"Snapshot with {len(ledger)} entries copied")
        return text

    def export_history(self, storage: Storage, ledger: HistoryLedger, key: str = EXPORT_KEY) -> str:
        """
        Write the raw history list to the export key.

        Returns:
            The storage key written
        """
        storage.save(key, ledger.to_list())
        self.logger.info(f"History exported to storage key {key}")
        return key
