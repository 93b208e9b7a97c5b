"""Tests for VideoCall — one session and one media controller per call."""

import asyncio
import logging

import pytest

from conftest import FakeLLM, FakeTTS, wait_for_calls
from personacall.call import CallManager, VideoCall, build_persona
from personacall.core.config import PersonaConfig, TTSConfig
from personacall.dialogue.models import Sender, Stage
from personacall.dialogue.openers import VIDEO_CALL_REASONS
from personacall.kernel.event_bus import EventBus, media_topic, state_topic
from personacall.media.sync import PlaybackState


def _drain(queue: asyncio.Queue) -> list:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


# ─── Persona ─────────────────────────────────────────────────


def test_build_persona_picks_voice_by_category():
    settings = PersonaConfig(static_image_categories=("female",))

    male = build_persona("male", settings)
    female = build_persona("Female", settings)
    unknown = build_persona("robot", settings)

    assert male.voice_profile == "onyx"
    assert male.supports_video_loop is True
    assert female.category == "female"
    assert female.voice_profile == "alloy"
    assert female.supports_video_loop is False
    assert unknown.voice_profile == "nova"


def test_build_persona_defaults_to_configured_category():
    persona = build_persona(None, PersonaConfig(default_category="female"))
    assert persona.category == "female"


def test_create_needs_bus_or_sink(fake_llm, fake_tts):
    with pytest.raises(ValueError):
        VideoCall.create(fake_llm, fake_tts)


# ─── Turns ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_submit_replies_and_speaks(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink, call_id="c1")

    snap = await call.submit("I've been so busy at work")

    assert snap.call_id == "c1"
    assert snap.turn_index == 2
    assert snap.stage == Stage.EMPATHY
    assert [m.sender for m in snap.history] == [Sender.USER, Sender.AGENT]
    assert snap.playback_state == PlaybackState.PLAYING
    assert fake_tts.calls == [("reply 1", "onyx")]
    assert sink.calls == ["play_audio", "start_video_loop"]


@pytest.mark.asyncio
async def test_speech_failure_still_shows_reply(fake_llm, sink):
    call = VideoCall.create(
        fake_llm, FakeTTS(error=RuntimeError("tts down")), sink=sink
    )

    snap = await call.submit("hello?")

    assert snap.history[-1].text == "reply 1"
    assert snap.playback_state == PlaybackState.IDLE
    assert sink.calls == []


@pytest.mark.asyncio
async def test_new_turn_barges_in_on_playback(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)
    await call.submit("first")
    sink.advance(1.5)

    snap = await call.submit("wait, listen")

    assert sink.calls[2:4] == ["stop_audio", "stop_video_loop"]
    assert sink.calls.count("play_audio") == 2
    assert snap.playback_state == PlaybackState.PLAYING
    assert snap.playback_id == 2
    assert sink.video_position == 0.0


@pytest.mark.asyncio
async def test_reply_for_overtaken_turn_is_never_spoken(fake_tts, sink):
    llm = FakeLLM()
    gate = asyncio.Event()
    llm.gates[1] = gate
    call = VideoCall.create(llm, fake_tts, sink=sink)

    first = asyncio.create_task(call.submit("one"))
    await wait_for_calls(llm, 1)
    await call.submit("two")
    gate.set()
    await first

    assert [m.text for m in call.session.history] == ["one", "two", "reply 2"]
    assert fake_tts.calls == [("reply 2", "onyx")]


@pytest.mark.asyncio
async def test_empty_submit_is_rejected(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)
    with pytest.raises(ValueError):
        await call.submit("  ")
    assert call.session.turn_index == 0


@pytest.mark.asyncio
async def test_start_greets_once(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)

    snap = await call.start()
    again = await call.start()

    assert len(snap.history) == 1
    assert snap.history[0].sender == Sender.AGENT
    assert len(again.history) == 1
    assert len(fake_tts.calls) == 1
    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_playback_ended_returns_to_idle(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)
    snap = await call.submit("hi")

    snap = await call.playback_ended(snap.playback_id)

    assert snap.playback_state == PlaybackState.IDLE


@pytest.mark.asyncio
async def test_ended_call_rejects_turns(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)
    await call.submit("hi")

    await call.end()

    assert call.media.state == PlaybackState.IDLE
    with pytest.raises(RuntimeError):
        await call.submit("hello?")


# ─── Events ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_events_published_on_bus(fake_llm, fake_tts):
    bus = EventBus()
    call = VideoCall.create(fake_llm, fake_tts, bus=bus, call_id="c2")
    media_q = bus.subscribe(media_topic("c2"))
    state_q = bus.subscribe(state_topic("c2"))

    await call.submit("hello")

    media_events = _drain(media_q)
    assert [e["type"] for e in media_events] == ["play_audio", "start_video_loop"]
    assert media_events[0]["playback_id"] == 1
    assert media_events[0]["audio"]

    state_events = _drain(state_q)
    assert state_events[0]["type"] == "message"
    assert state_events[0]["message"]["text"] == "reply 1"
    assert state_events[1] == {
        "type": "playback_state",
        "state": "playing",
        "playback_id": 1,
    }


@pytest.mark.asyncio
async def test_manager_tracks_calls(fake_llm, fake_tts):
    manager = CallManager(fake_llm, fake_tts, EventBus())

    call = manager.create("female", call_id="c3")

    assert manager.get("c3") is call
    assert manager.active() == ["c3"]
    assert call.persona.voice_profile == "alloy"
    assert await manager.end("c3") is True
    assert await manager.end("c3") is False
    assert manager.get("c3") is None


# ─── Voices and timing ───────────────────────────────────────


def test_elevenlabs_voice_comes_from_its_own_map():
    settings = PersonaConfig(elevenlabs_voices={"female": "el-female-id"})
    tts = TTSConfig(provider="elevenlabs", elevenlabs_voice_id="el-default-id")

    assert build_persona("female", settings, tts).voice_profile == "el-female-id"
    assert build_persona("male", settings, tts).voice_profile == "el-default-id"
    assert build_persona("male", settings, TTSConfig()).voice_profile == "onyx"


@pytest.mark.asyncio
async def test_turn_timing_includes_speech(fake_llm, fake_tts, sink, caplog):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)

    with caplog.at_level(logging.INFO, logger="personacall"):
        await call.submit("hello")

    done = [
        r.getMessage() for r in caplog.records if r.getMessage().startswith("Turn ")
    ]
    assert len(done) == 1
    assert "directive:" in done[0]
    assert "llm:" in done[0]
    assert "tts:" in done[0]


@pytest.mark.asyncio
async def test_greeting_uses_configured_opener_style(fake_llm, fake_tts, sink):
    call = VideoCall.create(fake_llm, fake_tts, sink=sink)
    call.session.opener_category = "video_call"

    snap = await call.start()

    assert any(snap.history[0].text.startswith(r) for r in VIDEO_CALL_REASONS)
