"""
Event Bus — async pub/sub between a call and whoever renders it.

A VideoCall never talks to a browser directly. Its playback sink and
state changes are published to topics; SSE endpoints subscribe and
forward events to the client.

Topics:
- call.{call_id}.media: playback commands (play_audio, stop_video_loop, ...)
- call.{call_id}.state: playback state and history updates

Each subscriber gets its own asyncio.Queue so a slow client never blocks
the call. publish() never waits; a full queue drops the event.

Usage:
    bus = EventBus()
    queue = bus.subscribe("call.abc.media")
    async for event in bus.listen(queue):
        ...
    bus.unsubscribe("call.abc.media", queue)
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, AsyncGenerator

from personacall.core.metrics import metrics

logger = logging.getLogger(__name__)

# Sentinel to signal end of stream
_STREAM_END = object()


def media_topic(call_id: str) -> str:
    return f"call.{call_id}.media"


def state_topic(call_id: str) -> str:
    return f"call.{call_id}.state"


class EventBus:
    """Topic-based async pub/sub on a single event loop."""

    def __init__(self, maxsize: int = 256) -> None:
        self.maxsize = maxsize
        self._subscribers: dict[str, list[asyncio.Queue]] = defaultdict(list)

    async def publish(self, topic: str, event: Any) -> int:
        """Deliver to every subscriber of the topic. Returns delivery count."""
        delivered = 0
        for queue in list(self._subscribers.get(topic, [])):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                metrics.inc("event_bus.dropped")
                logger.warning("Subscriber queue full on %s, dropping event", topic)
        return delivered

    def subscribe(
        self,
        topic: str,
        maxsize: int | None = None,
        queue: asyncio.Queue | None = None,
    ) -> asyncio.Queue:
        """Subscribe to a topic. Pass an existing queue to merge several topics."""
        if queue is None:
            queue = asyncio.Queue(maxsize=maxsize or self.maxsize)
        self._subscribers[topic].append(queue)
        logger.debug(
            "Subscribed to %s (total: %d)", topic, len(self._subscribers[topic])
        )
        return queue

    def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        """Safe to call for a queue that is already gone."""
        queues = self._subscribers.get(topic)
        if not queues or queue not in queues:
            return
        queues.remove(queue)
        if not queues:
            del self._subscribers[topic]
        logger.debug("Unsubscribed from %s", topic)

    async def publish_end(self, topic: str) -> None:
        """End every listen() loop on this topic."""
        for queue in self._subscribers.get(topic, []):
            try:
                queue.put_nowait(_STREAM_END)
            except asyncio.QueueFull:
                logger.debug("Queue full on %s, end-of-stream not delivered", topic)

    async def listen(self, queue: asyncio.Queue) -> AsyncGenerator[Any, None]:
        """Yield events from a subscriber queue until end-of-stream."""
        while True:
            item = await queue.get()
            if item is _STREAM_END:
                break
            yield item

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))
