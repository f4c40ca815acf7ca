"""
Named-event notification channel.

Owned by a service and exposed only through subscribe/unsubscribe;
callbacks take no arguments.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

DATA_CHANGED = "data-changed"


class EventChannel:
    """A list of callbacks per event name."""

    def __init__(self):
        self._listeners: dict[str, list[Callable[[], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback for event. Returns the callback for later unsubscribe."""
        self._listeners.setdefault(event, []).append(callback)
        return callback

    def unsubscribe(self, event: str, callback: Callable[[], None]) -> bool:
        """Remove a callback. Returns False if it was not registered."""
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)
            return True
        return False

    def emit(self, event: str) -> None:
        """
        Call every callback registered for event.

        A failing callback is logged and does not stop delivery to the others.
        """
        for callback in list(self._listeners.get(event, [])):
            try:
                callback()
            except Exception:
                logger.exception("Listener for %r failed", event)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def clear(self) -> None:
        """Detach all listeners."""
        self._listeners.clear()
