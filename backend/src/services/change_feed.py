"""
In-process change feed for live-updating clinic views.

Writers publish small event dicts on a topic (one topic per clinic) after
their transaction commits; readers subscribe with a callback and get back a
Subscription handle. ``listen()`` wraps subscribe/unsubscribe in a context
manager so a reader that goes away (closed websocket, finished request) is
always detached.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, List

logger = logging.getLogger(__name__)

Event = Dict[str, Any]
Listener = Callable[[Event], None]


def clinic_topic(clinic_id: str) -> str:
    """Topic name carrying staff and invitation changes for one clinic."""
    return f"clinic:{clinic_id}"


class Subscription:
    """Cancellation handle returned by ChangeFeed.subscribe."""

    def __init__(self, feed: "ChangeFeed", topic: str, listener: Listener) -> None:
        self._feed = feed
        self.topic = topic
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        """Detach the listener. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self._feed._remove(self)

    def __repr__(self) -> str:
        return f"<Subscription(topic='{self.topic}', active={self.active})>"


class ChangeFeed:
    """Topic-based publish/subscribe hub."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def subscribe(self, topic: str, listener: Listener) -> Subscription:
        """Register a listener for a topic and return its cancellation handle."""
        subscription = Subscription(self, topic, listener)
        with self._lock:
            self._subscriptions.setdefault(topic, []).append(subscription)
        logger.debug(f"Subscribed to {topic}")
        return subscription

    @contextmanager
    def listen(self, topic: str, listener: Listener) -> Generator[Subscription, None, None]:
        """Subscribe for the duration of a with-block."""
        subscription = self.subscribe(topic, listener)
        try:
            yield subscription
        finally:
            subscription.unsubscribe()

    def publish(self, topic: str, event: Event) -> int:
        """
        Deliver an event to every listener of a topic.

        A failing listener is logged and skipped; the remaining listeners
        still receive the event.

        Returns:
            Number of listeners that received the event
        """
        with self._lock:
            listeners = list(self._subscriptions.get(topic, []))

        delivered = 0
        for subscription in listeners:
            try:
                subscription.listener(event)
                delivered += 1
            except Exception as e:
                logger.exception(f"Change feed listener failed on {topic}: {e}")
        return delivered

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(topic, []))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._subscriptions.get(subscription.topic, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscriptions.pop(subscription.topic, None)
        logger.debug(f"Unsubscribed from {subscription.topic}")
