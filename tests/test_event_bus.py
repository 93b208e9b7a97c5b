"""Tests for EventBus — async pub/sub."""

import asyncio

import pytest

from personacall.core.metrics import metrics
from personacall.kernel.event_bus import EventBus, media_topic, state_topic


@pytest.mark.asyncio
async def test_publish_and_listen():
    bus = EventBus()
    queue = bus.subscribe("call.abc.media")

    await bus.publish("call.abc.media", {"type": "play_audio"})
    await bus.publish_end("call.abc.media")

    events = [e async for e in bus.listen(queue)]
    assert events == [{"type": "play_audio"}]


@pytest.mark.asyncio
async def test_multiple_subscribers_and_isolation():
    bus = EventBus()
    q1 = bus.subscribe("call.a.media")
    q2 = bus.subscribe("call.a.media")
    q_other = bus.subscribe("call.b.media")

    assert await bus.publish("call.a.media", "event-1") == 2
    await bus.publish_end("call.a.media")
    await bus.publish_end("call.b.media")

    assert [e async for e in bus.listen(q1)] == ["event-1"]
    assert [e async for e in bus.listen(q2)] == ["event-1"]
    assert [e async for e in bus.listen(q_other)] == []


@pytest.mark.asyncio
async def test_publish_without_subscribers():
    bus = EventBus()
    assert await bus.publish("call.nobody.media", "lost") == 0


def test_unsubscribe_idempotent():
    bus = EventBus()
    queue = bus.subscribe("call.abc.state")
    assert bus.subscriber_count("call.abc.state") == 1

    bus.unsubscribe("call.abc.state", queue)
    bus.unsubscribe("call.abc.state", queue)
    assert bus.subscriber_count("call.abc.state") == 0


@pytest.mark.asyncio
async def test_shared_queue_merges_topics():
    bus = EventBus()
    queue = bus.subscribe(media_topic("x"))
    bus.subscribe(state_topic("x"), queue=queue)

    await bus.publish(media_topic("x"), "media")
    await bus.publish(state_topic("x"), "state")
    await bus.publish_end(media_topic("x"))

    assert [e async for e in bus.listen(queue)] == ["media", "state"]


@pytest.mark.asyncio
async def test_full_queue_drops_event():
    bus = EventBus()
    queue = bus.subscribe("call.slow.media", maxsize=1)

    assert await bus.publish("call.slow.media", "one") == 1
    assert await bus.publish("call.slow.media", "two") == 0
    assert queue.qsize() == 1
    assert metrics.counter("event_bus.dropped") == 1
