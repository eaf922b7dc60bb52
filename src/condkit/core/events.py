"""Event bus used to tell the host about changes inside the condition editor.

The builder core never talks to widgets or date pickers directly. It emits
events instead and the host subscribes to the ones it cares about.

Example usage:
    # Host wires its date picker to freshly installed date inputs
    services.event_bus.subscribe(DATES_INITIALIZE, picker.attach)

    # Host refreshes a preview whenever the tree changes
    services.event_bus.subscribe(CONDITIONS_CHANGED, preview.refresh)
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

_logger = logging.getLogger("CondKit.EventBus")

EventCallback = Callable[[str, Dict[str, Any]], None]

# Emitted after every structural or value edit. Data: ``action`` and ``key``.
CONDITIONS_CHANGED = "conditions.changed"
# Emitted whenever a DATE or DATE_RANGE slot is installed.
# Data: ``row`` (rule row token) and ``roles`` (tuple of input roles).
DATES_INITIALIZE = "dates.initialize"


class EventBus:
    """Central pub/sub hub shared by the builder session and its host."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventCallback]] = {}
        self._lock = threading.RLock()

    def subscribe(self, event_name: str, callback: EventCallback) -> None:
        """Subscribe to an event.

        Args:
            event_name: Name of the event to listen for (e.g. 'dates.initialize')
            callback: Called with ``(event_name, data)`` on every emit.
        """
        with self._lock:
            callbacks = self._subscribers.setdefault(event_name, [])
            if callback not in callbacks:
                callbacks.append(callback)

    def unsubscribe(self, event_name: str, callback: EventCallback) -> None:
        with self._lock:
            if event_name in self._subscribers:
                try:
                    self._subscribers[event_name].remove(callback)
                except ValueError:
                    pass

    def unsubscribe_all(self, callback: EventCallback) -> None:
        with self._lock:
            for subscribers in self._subscribers.values():
                try:
                    subscribers.remove(callback)
                except ValueError:
                    pass

    def emit(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Emit an event to all subscribers.

        A failing subscriber is logged and skipped so the remaining ones still
        receive the event.
        """
        if data is None:
            data = {}

        with self._lock:
            callbacks = self._subscribers.get(event_name, []).copy()

        for callback in callbacks:
            try:
                callback(event_name, data)
            except Exception:
                _logger.exception("Subscriber for '%s' failed", event_name)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def get_event_names(self) -> List[str]:
        with self._lock:
            return [name for name, callbacks in self._subscribers.items() if callbacks]

    def subscriber_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_name, []))
