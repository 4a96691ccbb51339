"""
EventBus for in-process graph change notification.

Provides thread-safe subscription and publishing so views can refresh when the
persisted graph changes.

Usage:
    bus = EventBus()

    # Subscribe to specific event types
    bus.subscribe('graph.node_added', lambda event: print(f"Added: {event.label}"))

    # Subscribe to all events
    bus.subscribe('*', lambda event: refresh_view())

    # Publish events
    from topicgraph.events import GraphClearedEvent
    bus.publish(GraphClearedEvent())
"""

from typing import Callable, Dict, List, Any
from threading import Lock
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Thread-safe in-process event bus for pub/sub.

    Supports:
    - subscribe(event_type, callback): Register callbacks for specific event types
    - publish(event): Emit events to all matching subscribers
    - Wildcard subscription: subscribe('*', callback) receives all events
    """

    def __init__(self):
        # event_type -> callbacks
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: str, callback: Callable[[Any], None]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event type to listen for (e.g., 'graph.node_added').
                       Use '*' to subscribe to all event types
            callback: Function called with the event object
        """
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to {event_type}: {getattr(callback, '__name__', 'lambda')}")

    def unsubscribe(self, event_type: str, callback: Callable[[Any], None]) -> bool:
        """
        Unsubscribe a callback from an event type.

        Returns:
            True if callback was found and removed, False otherwise
        """
        with self._lock:
            callbacks = self._subscribers.get(event_type)
            if not callbacks or callback not in callbacks:
                return False
            callbacks.remove(callback)
            if not callbacks:
                del self._subscribers[event_type]
        logger.debug(f"Unsubscribed from {event_type}")
        return True

    def publish(self, event: Any) -> None:
        """
        Publish an event to specific and wildcard subscribers.

        A failing callback is logged and does not stop delivery to the others.

        Args:
            event: Event object (must have 'event_type' attribute)
        """
        if not hasattr(event, 'event_type'):
            logger.warning(f"Event missing 'event_type' attribute: {type(event).__name__}")
            return

        event_type = event.event_type

        # Copy so callbacks run without holding the lock
        with self._lock:
            callbacks = list(self._subscribers.get(event_type, []))
            callbacks += self._subscribers.get('*', [])

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in subscriber callback for {event_type}: {e}", exc_info=True)

        logger.debug(f"Published {event_type} to {len(callbacks)} subscribers")

    def clear(self) -> None:
        """Clear all subscriptions."""
        with self._lock:
            self._subscribers.clear()

    def subscriber_count(self, event_type: str = None) -> int:
        with self._lock:
            if event_type:
                return len(self._subscribers.get(event_type, []))
            return sum(len(subs) for subs in self._subscribers.values())


_global_bus = None


def get_event_bus() -> EventBus:
    """
    Get or create global EventBus instance.

    Returns:
        Global EventBus singleton
    """
    global _global_bus
    if _global_bus is None:
        _global_bus = EventBus()
    return _global_bus


def reset_event_bus() -> None:
    """Reset global event bus (mainly for testing)."""
    global _global_bus
    _global_bus = EventBus()
