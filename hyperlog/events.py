"""In-process broadcast of executed commands.

Each subscriber owns a bounded queue.  A broadcast is delivered to every
subscriber registered at that moment; late subscribers see nothing from
before they joined.  Nothing is ever discarded: when a subscriber falls
behind and its queue is full, the broadcasting thread blocks until that
subscriber receives or closes.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional

from hyperlog.commands import Command
from hyperlog.config import settings

logger = logging.getLogger(__name__)

# How often a blocked broadcast re-checks whether its subscriber has closed.
_FULL_POLL_SECONDS = 0.1


@dataclass(frozen=True)
class CommandEvent:
    command: Command


Event = CommandEvent


class Subscription:
    """Receiving end of :class:`Events`; call :meth:`recv` to take events."""

    def __init__(self, events: Events, capacity: int) -> None:
        self._events = events
        self._queue: queue.Queue[Event] = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    def recv(self, timeout: Optional[float] = None) -> Event:
        """Block until the next event arrives.

        Raises:
            queue.Empty: If *timeout* elapses first.
        """
        return self._queue.get(timeout=timeout)

    def try_recv(self) -> Optional[Event]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed.set()
        self._events._remove(self)

    def _deliver(self, event: Event) -> None:
        while not self._closed.is_set():
            try:
                self._queue.put(event, timeout=_FULL_POLL_SECONDS)
                return
            except queue.Full:
                logger.debug("subscriber queue full, waiting to deliver %r", event)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Events:
    def __init__(self, capacity: Optional[int] = None) -> None:
        self.capacity = capacity if capacity is not None else settings.event_capacity
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self.capacity)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def enqueue_command(self, command: Command) -> None:
        event = CommandEvent(command=command)
        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription._deliver(event)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
