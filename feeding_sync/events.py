"""Publish/subscribe notifications for Feeding Sync.

Components publish named events; a presentation layer subscribes to the ones
it renders. Subscriber errors are logged and never reach the publisher.

Events:
    feedings_changed: the local view of feedings changed (cache patch or refresh,
        or a confirmed online write)
    sync_started / sync_finished: a drain pass began / ended (payload: stats dict)
    connectivity_changed: watcher state changed (payload: {"online": bool})
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

FEEDINGS_CHANGED = "feedings_changed"
SYNC_STARTED = "sync_started"
SYNC_FINISHED = "sync_finished"
CONNECTIVITY_CHANGED = "connectivity_changed"

Subscriber = Callable[[str, Dict[str, Any]], None]


class EventBus:
    """Thread-safe in-process event bus.

    Example:
        bus = EventBus()
        unsubscribe = bus.subscribe(lambda name, payload: print(name), FEEDINGS_CHANGED)
        bus.publish(FEEDINGS_CHANGED)
        unsubscribe()
    """

    def __init__(self):
        self._lock = threading.Lock()
        # None key holds wildcard subscribers
        self._subscribers: Dict[Optional[str], List[Subscriber]] = {}

    def subscribe(self, callback: Subscriber, event: Optional[str] = None) -> Callable[[], None]:
        """Register a callback for one event, or for every event if None.

        Returns:
            A function that removes the subscription
        """
        with self._lock:
            self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(event, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Deliver an event synchronously to its subscribers."""
        with self._lock:
            callbacks = list(self._subscribers.get(event, [])) + list(self._subscribers.get(None, []))

        for callback in callbacks:
            try:
                callback(event, payload or {})
            except Exception as e:
                logger.error(f"Subscriber error on '{event}': {e}")

    def subscriber_count(self, event: Optional[str] = None) -> int:
        with self._lock:
            return len(self._subscribers.get(event, []))
