import logging
import uuid
from typing import Any, Dict, Optional

from rng_lab.domain.events.event_dispatcher import EventDispatcher
from rng_lab.domain.spin.entities.spin_configuration import SpinConfiguration
from rng_lab.infrastructure.rng.rng_provider import RNGProvider
from rng_lab.infrastructure.scheduling.scheduler import Scheduler
from rng_lab.infrastructure.storage.json_file_storage import JsonFileStorage
from rng_lab.infrastructure.storage.memory_storage import InMemoryStorage
from .game_session import GameSession


class SessionFactory:
    """
    Factory for creating GameSession instances from configuration.
    """
    def __init__(self, scheduler: Scheduler, event_dispatcher: Optional[EventDispatcher] = None):
        """
        Args:
            scheduler: Timer source handed to every session
            event_dispatcher: Optional dispatcher shared by the sessions
        """
        self.logger = logging.getLogger("application.session.factory")
        self.scheduler = scheduler
        self.event_dispatcher = event_dispatcher

    def create_storage(self, storage_config: Dict[str, Any]):
        backend = storage_config.get("backend", "memory")
        if backend == "file":
            return JsonFileStorage(storage_config.get("directory", "data"))
        if backend != "memory":
            self.logger.warning(f"Unknown storage backend '{backend}', using memory")
        return InMemoryStorage()

    def create_session_from_config(self, config: Dict[str, Any], storage=None,
                                   session_id: Optional[str] = None) -> GameSession:
        """
        Create a session from a validated configuration dictionary.

        Args:
            config: Dict with "session" and "storage" sections
            storage: Optional storage overriding the configured backend
            session_id: Optional session ID (generated if not provided)

        Returns:
            New GameSession
        """
        session_config = config.get("session", {})
        if not session_id:
            session_id = f"session_{uuid.uuid4().hex[:8]}"

        if storage is None:
            storage = self.create_storage(config.get("storage", {}))

        self.logger.info(f"Creating session {session_id}")

        return GameSession(
            session_id=session_id,
            scheduler=self.scheduler,
            storage=storage,
            rng_provider=RNGProvider(session_config.get("rng_strategy", "mersenne")),
            event_dispatcher=self.event_dispatcher,
            config=SpinConfiguration(
                num_outcomes=session_config.get("num_outcomes", 6),
                bet_amount=session_config.get("bet_amount", 10),
                payout_multiplier=session_config.get("payout_multiplier", 5)
            ),
            seed=session_config.get("seed", "") or "",
            autoplay_interval_ms=session_config.get("autoplay_interval_ms", 1200),
            save_debounce_ms=session_config.get("save_debounce_ms", 250)
        )
