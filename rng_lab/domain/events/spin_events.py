from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict


class SpinEventType(Enum):
    """Event types raised by the spin engine and the session around it."""
    SPIN_REQUESTED = auto()
    SPIN_REJECTED = auto()
    SPIN_RESOLVED = auto()
    AUTOPLAY_STARTED = auto()
    AUTOPLAY_STOPPED = auto()
    AUTOPLAY_TICK_DROPPED = auto()
    SETTINGS_CHANGED = auto()
    HISTORY_CLEARED = auto()
    HISTORY_SAVED = auto()
    SESSION_CLOSED = auto()


@dataclass
class SpinEvent:
    """Something that happened in a game session."""
    type: SpinEventType
    session_id: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"SpinEvent({self.type.name}, session={self.session_id or '-'})"
