"""Observer channels for node store change notifications.

The store owns one ``EventChannel`` per notification point (saved,
deleting, deleted).  Listeners register with ``subscribe()`` and keep the
returned ``Subscription`` to detach later.  ``publish()`` calls every
listener synchronously, in registration order, so a store that publishes
before committing a delete gives listeners a "before commit" view and a
store that publishes afterwards gives them an "after commit" view.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

Listener = Callable[[Sequence[T]], object]


class Subscription(Generic[T]):
    """Handle returned by ``EventChannel.subscribe``."""

    def __init__(self, channel: EventChannel[T], listener: Listener) -> None:
        self._channel = channel
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Detach the listener.  Safe to call more than once."""
        if self._active:
            self._channel._remove(self._listener)
            self._active = False


class EventChannel(Generic[T]):
    """A named, thread-safe list of listeners receiving item batches.

    Args:
        name: Channel name used in log messages (e.g. ``"saved"``).
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Subscription[T]:
        """Register *listener* and return its ``Subscription``."""
        with self._lock:
            self._listeners.append(listener)
        logger.debug("Listener subscribed to '%s'", self.name)
        return Subscription(self, listener)

    def publish(self, batch: Sequence[T]) -> None:
        """Deliver *batch* to every current listener.

        Listeners are snapshotted under the lock and called outside it, so
        a listener may subscribe or unsubscribe while being notified.
        Exceptions raised by a listener propagate to the publisher.
        """
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(batch)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        logger.debug("Listener unsubscribed from '%s'", self.name)
