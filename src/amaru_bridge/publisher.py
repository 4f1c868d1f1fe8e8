"""
Delivery of domain events to the presentation layer.

`EventPublisher` is fire-and-forget: it serializes an event, hands it to an
emitter together with the channel name, and forgets about it. Whatever the
emitter raises (no listener, closed channel) is logged and dropped so that a
missing subscriber can never stop the drain loop.

`EventChannel` is an in-process emitter. Presentation-layer code subscribes to
a channel name and receives wire payloads on an `asyncio.Queue`.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from .errors import NoSubscriberError
from .models import AppEvent

DEFAULT_CHANNEL = "amaru"

Emitter = Callable[[str, Dict[str, Any]], Any]


class EventPublisher:
    def __init__(self, emit: Emitter, channel: str = DEFAULT_CHANNEL):
        self._emit = emit
        self.channel = channel

    def publish(self, event: AppEvent):
        """Sends one event to the channel. Never raises."""
        try:
            self._emit(self.channel, event.to_payload())
        except Exception as e:
            logging.debug(f"Dropped {event.type}/{event.kind} event on channel {self.channel!r}: {e}")


class EventChannel:
    """
    Fans payloads out to every queue subscribed to a channel name.

    Must be used from the event loop that owns the subscriber queues.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[asyncio.Queue]] = defaultdict(list)

    def emit(self, channel: str, payload: Dict[str, Any]):
        queues = self._subscribers.get(channel)
        if not queues:
            raise NoSubscriberError(f"No subscriber on channel {channel!r}")
        for queue in queues:
            queue.put_nowait(payload)

    def subscribe(self, channel: str = DEFAULT_CHANNEL) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[channel].append(queue)
        return queue

    def unsubscribe(self, channel: str, queue: asyncio.Queue):
        if channel in self._subscribers and queue in self._subscribers[channel]:
            self._subscribers[channel].remove(queue)
            if not self._subscribers[channel]:
                del self._subscribers[channel]
