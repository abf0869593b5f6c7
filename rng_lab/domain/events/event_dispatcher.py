import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List

from .spin_events import SpinEvent, SpinEventType

EventHandler = Callable[[SpinEvent], None]


class EventDispatcher:
    """
    Routes session events to the handlers registered for their type and to
    handlers listening to every event.

    Handlers run synchronously, in registration order. A failing handler is
    logged and skipped; the engine that raised the event never sees it.
    """
    def __init__(self):
        self.logger = logging.getLogger("domain.events.dispatcher")
        self._by_type: DefaultDict[SpinEventType, List[EventHandler]] = defaultdict(list)
        self._catch_all: List[EventHandler] = []
        self.dispatched = 0
        self.handler_errors = 0

    def register(self, event_type: SpinEventType, handler: EventHandler):
        """
        Call handler for every event of one type.

        Args:
            event_type: Event type to listen for
            handler: Callable receiving the SpinEvent
        """
        self._by_type[event_type].append(handler)
        self.logger.debug(f"Handler registered for {event_type.name}")

    def register_all(self, handler: EventHandler):
        """Call handler for every event, whatever its type."""
        self._catch_all.append(handler)
        self.logger.debug("Catch-all handler registered")

    def unregister(self, event_type: SpinEventType, handler: EventHandler) -> bool:
        """
        Returns:
            True if the handler was registered for event_type and is now removed
        """
        handlers = self._by_type.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def unregister_all(self, handler: EventHandler) -> bool:
        if handler not in self._catch_all:
            return False
        self._catch_all.remove(handler)
        return True

    def has_handlers(self, event_type: SpinEventType) -> bool:
        return bool(self._by_type.get(event_type) or self._catch_all)

    def dispatch(self, event: SpinEvent):
        """
        Deliver an event.

        Args:
            event: Event to deliver
        """
        self.dispatched += 1
        # Snapshot, so a handler may unregister itself mid-dispatch
        handlers = list(self._by_type.get(event.type, ())) + list(self._catch_all)
        if not handlers:
            return

        self.logger.debug(f"Dispatching {event} to {len(handlers)} handlers")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.handler_errors += 1
                self.logger.error(f"Handler for {event.type.name} failed: {e}")
