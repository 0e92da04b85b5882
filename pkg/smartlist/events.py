"""
Event bus: synchronous state-change notifications.

CardStore emits card_created, card_deleted, card_purged and save_failed.
SmartListApp emits load_failed. Callbacks run in registration order on
the emitting thread. With background saves, save_failed for a failed
write is emitted on the writer thread, so subscribers that touch
thread-bound state must lock or hand off to their own thread.
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

CARD_CREATED = "card_created"
CARD_DELETED = "card_deleted"
CARD_PURGED = "card_purged"
SAVE_FAILED = "save_failed"
LOAD_FAILED = "load_failed"


class EventBus:
    """Routes named events to registered callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        callbacks = self.subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Deliver an event to every subscriber, in registration order."""
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")
