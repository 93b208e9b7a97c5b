"""Tests for MediaSyncController — playback states, duplicates, barge-in."""

import asyncio

import pytest

from conftest import FakeTTS, RecordingSink, wait_for_calls
from personacall.core.metrics import metrics
from personacall.media.sync import MediaSyncController, PlaybackState


def _controller(tts, sink, **kwargs):
    media = MediaSyncController(tts, sink, call_id="call-1", **kwargs)
    states: list[PlaybackState] = []

    async def record(state):
        states.append(state)

    media.on_state_change = record
    return media, states


@pytest.mark.asyncio
async def test_speak_starts_audio_and_video(fake_tts, sink):
    media, states = _controller(fake_tts, sink)

    started = await media.speak("Whoa, grown-up me!", "onyx")

    assert started is True
    assert media.state == PlaybackState.PLAYING
    assert states == [PlaybackState.PLAYING]
    assert sink.calls == ["play_audio", "start_video_loop"]
    assert sink.audio == [b"audio:Whoa, grown-up me!"]
    assert fake_tts.calls == [("Whoa, grown-up me!", "onyx")]
    assert media.last_spoken_text == "Whoa, grown-up me!"


@pytest.mark.asyncio
async def test_duplicate_speak_before_first_completes_plays_once(sink):
    tts = FakeTTS()
    gate = asyncio.Event()
    tts.gates[1] = gate
    media, _ = _controller(tts, sink)

    first = asyncio.create_task(media.speak("hello", "onyx"))
    await wait_for_calls(tts, 1)
    second = await media.speak("hello", "onyx")
    gate.set()

    assert second is False
    assert await first is True
    assert sink.calls.count("play_audio") == 1
    assert len(tts.calls) == 1
    assert metrics.counter("media.duplicates_suppressed") == 1


@pytest.mark.asyncio
async def test_duplicate_while_playing_is_ignored(fake_tts, sink):
    media, _ = _controller(fake_tts, sink)
    await media.speak("hello", "onyx")
    assert await media.speak("hello", "onyx") is False
    assert sink.calls.count("play_audio") == 1


@pytest.mark.asyncio
async def test_playback_end_stops_video_and_allows_repeat(fake_tts, sink):
    media, states = _controller(fake_tts, sink)
    await media.speak("hello", "onyx")
    sink.advance(1.2)

    ended = await media.on_playback_ended(media.playback_id)

    assert ended is True
    assert states == [PlaybackState.PLAYING, PlaybackState.STOPPED, PlaybackState.IDLE]
    assert media.state == PlaybackState.IDLE
    assert media.last_spoken_text is None
    assert sink.calls[-1] == "stop_video_loop"
    assert sink.video_position == 0.0

    assert await media.speak("hello", "onyx") is True
    assert sink.calls.count("play_audio") == 2


@pytest.mark.asyncio
async def test_interrupt_while_playing_resets_video(fake_tts, sink):
    media, states = _controller(fake_tts, sink)
    await media.speak("a long story about dinosaurs", "onyx")
    sink.advance(2.5)
    assert sink.video_position == 2.5

    interrupted = await media.interrupt()

    assert interrupted is True
    assert states[-2:] == [PlaybackState.STOPPED, PlaybackState.IDLE]
    assert "stop_audio" in sink.calls
    assert sink.video_position == 0.0
    assert not sink.video_playing
    assert media.last_spoken_text is None
    assert media.state == PlaybackState.IDLE


@pytest.mark.asyncio
async def test_interrupt_when_idle_is_noop(fake_tts, sink):
    media, states = _controller(fake_tts, sink)
    assert await media.interrupt() is False
    assert states == []
    assert sink.calls == []


@pytest.mark.asyncio
async def test_synthesis_failure_is_swallowed(sink):
    media, states = _controller(FakeTTS(error=RuntimeError("tts down")), sink)

    started = await media.speak("hello", "onyx")

    assert started is False
    assert media.state == PlaybackState.IDLE
    assert states == []
    assert sink.calls == []
    assert media.last_spoken_text is None
    assert metrics.counter("media.tts_failures") == 1


@pytest.mark.asyncio
async def test_synthesis_timeout_is_swallowed(sink):
    tts = FakeTTS()
    tts.gates[1] = asyncio.Event()
    media, _ = _controller(tts, sink, tts_timeout=0.01)

    assert await media.speak("hello", "onyx") is False
    assert media.state == PlaybackState.IDLE
    assert sink.calls == []


@pytest.mark.asyncio
async def test_speech_ready_after_interrupt_is_dropped(sink):
    tts = FakeTTS()
    gate = asyncio.Event()
    tts.gates[1] = gate
    media, _ = _controller(tts, sink)

    pending = asyncio.create_task(media.speak("hello", "onyx"))
    await wait_for_calls(tts, 1)
    await media.interrupt()
    gate.set()

    assert await pending is False
    assert sink.calls == []
    assert media.state == PlaybackState.IDLE


@pytest.mark.asyncio
async def test_speech_for_old_turn_is_dropped(fake_tts, sink):
    media, _ = _controller(fake_tts, sink)
    assert await media.speak("hello", "onyx", is_current=lambda: False) is False
    assert sink.calls == []


@pytest.mark.asyncio
async def test_dropped_speech_can_be_spoken_again(fake_tts, sink):
    media, _ = _controller(fake_tts, sink)
    await media.speak("hello", "onyx", is_current=lambda: False)

    assert media.last_spoken_text is None
    assert await media.speak("hello", "onyx") is True
    assert sink.calls == ["play_audio", "start_video_loop"]


@pytest.mark.asyncio
async def test_static_image_persona_skips_video(fake_tts, sink):
    media, _ = _controller(fake_tts, sink, supports_video_loop=False)

    await media.speak("hello", "alloy")
    await media.on_playback_ended()

    assert sink.calls == ["play_audio", "show_static_image"]
    assert media.state == PlaybackState.IDLE


@pytest.mark.asyncio
async def test_end_report_for_old_playback_is_ignored(fake_tts, sink):
    media, _ = _controller(fake_tts, sink)
    await media.speak("hello", "onyx")

    assert await media.on_playback_ended(playback_id=media.playback_id - 1) is False
    assert media.state == PlaybackState.PLAYING


@pytest.mark.asyncio
async def test_new_speech_replaces_current_playback(fake_tts, sink):
    media, _ = _controller(fake_tts, sink)
    await media.speak("first", "onyx")
    await media.speak("second", "onyx")

    assert sink.calls == [
        "play_audio",
        "start_video_loop",
        "stop_audio",
        "stop_video_loop",
        "play_audio",
        "start_video_loop",
    ]
    assert sink.playback_ids == [1, 2]
    assert media.state == PlaybackState.PLAYING
