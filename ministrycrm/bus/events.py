"""
Event Bus - Decoupled Module Communication
The session, pages and forms emit events; the CLI and other observers listen.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple event bus for decoupled module communication.
    Modules emit events, other modules register handlers to listen.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """
        Register a handler for an event.

        Args:
            event_name: Name of the event to listen for
            handler: Callable that receives event_data dict
        """
        if event_name not in self._handlers:
            self._handlers[event_name] = []
        self._handlers[event_name].append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {getattr(handler, '__name__', handler)}")

    def off(self, event_name: str, handler: Callable):
        """Unregister a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to all registered handlers.

        Args:
            event_name: Name of the event
            event_data: Optional dict of data to pass to handlers
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with data: {event_data}")

        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {getattr(handler, '__name__', handler)} for event '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Session events
EVENT_LOGGED_IN = 'logged_in'
EVENT_LOGGED_OUT = 'logged_out'
EVENT_SESSION_EXPIRED = 'session_expired'
EVENT_NAVIGATED = 'navigated'

# Contact events
EVENT_CONTACT_CREATED = 'contact_created'
EVENT_CONTACT_UPDATED = 'contact_updated'
EVENT_STATUS_CHANGED = 'status_changed'

# Study events
EVENT_STUDY_SAVED = 'study_saved'
EVENT_STUDY_DELETED = 'study_deleted'
EVENT_LESSON_SAVED = 'lesson_saved'
EVENT_LESSON_DELETED = 'lesson_deleted'

# Room & reservation events
EVENT_ROOM_SAVED = 'room_saved'
EVENT_ROOM_DELETED = 'room_deleted'
EVENT_RESERVATION_CREATED = 'reservation_created'
EVENT_RESERVATION_UPDATED = 'reservation_updated'
EVENT_RESERVATION_CANCELLED = 'reservation_cancelled'
