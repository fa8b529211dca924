"""Publish/subscribe surface for motion events."""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Tuple

from ..models import EventType, MotionEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[MotionEvent], None]


class EventDispatcher:
    """Delivers motion events to subscribers.

    Subscribers are called in subscription order, synchronously, on the
    thread that emits the event. A subscriber registered with an event type
    only receives events of that type; one registered without a type
    receives all of them.
    """

    def __init__(self):
        self._subscribers: List[Tuple[Optional[EventType], EventCallback]] = []
        self._callback_lock = threading.Lock()

    def subscribe(
        self,
        callback: EventCallback,
        event_type: Optional[EventType] = None,
    ) -> Callable[[], None]:
        """Subscribe to motion events.

        Args:
            callback: Function that receives MotionEvent instances
            event_type: Only deliver events with this tag, or None for all

        Returns:
            Unsubscribe function to remove this subscription

        Example:
            >>> def on_translate(event):
            ...     print(event.x, event.y, event.z)
            >>> unsubscribe = dispatcher.subscribe(on_translate, EventType.TRANSLATE)
            >>> # Later...
            >>> unsubscribe()
        """
        entry = (event_type, callback)
        with self._callback_lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._callback_lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def unsubscribe(self, callback: EventCallback) -> None:
        """Remove every subscription of a callback."""
        with self._callback_lock:
            self._subscribers = [
                entry for entry in self._subscribers if entry[1] != callback
            ]

    def emit(self, event: MotionEvent) -> None:
        """Deliver one event to all matching subscribers."""
        with self._callback_lock:
            subscribers = list(self._subscribers)

        for event_type, callback in subscribers:
            if event_type is not None and event_type is not event.type:
                continue
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in {event.type.value} callback: {e}")

    @property
    def subscriber_count(self) -> int:
        with self._callback_lock:
            return len(self._subscribers)
