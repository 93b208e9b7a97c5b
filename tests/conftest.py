"""
Shared fakes for PersonaCall tests.

FakeLLM / FakeTTS stand in for the providers; RecordingSink records what
would have been played. Any call can be held back with a gate so tests
can interleave turns deterministically.
"""

from __future__ import annotations

import asyncio

import pytest

from personacall.core.metrics import metrics
from personacall.dialogue.models import Message, Sender
from personacall.media.sink import PlaybackSink
from personacall.providers.base import LLMProvider, TTSProvider


class FakeLLM(LLMProvider):
    """Replies "reply N" to the N-th call unless replies are given."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[list[dict]] = []
        self.gates: dict[int, asyncio.Event] = {}

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def generate_stream(self, messages, max_tokens=150, temperature=0.8):
        yield await self.complete(messages, max_tokens, temperature)

    async def complete(self, messages, max_tokens=150, temperature=0.8) -> str:
        self.calls.append(messages)
        n = len(self.calls)
        gate = self.gates.get(n)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        if n <= len(self.replies):
            return self.replies[n - 1]
        return f"reply {n}"


class FakeTTS(TTSProvider):
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.gates: dict[int, asyncio.Event] = {}

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def synthesize(self, text: str, voice: str) -> bytes:
        self.calls.append((text, voice))
        gate = self.gates.get(len(self.calls))
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return f"audio:{text}".encode()


class RecordingSink(PlaybackSink):
    """Remembers every playback command and tracks the video position."""

    def __init__(self):
        self.calls: list[str] = []
        self.audio: list[bytes] = []
        self.playback_ids: list[int] = []
        self.video_playing = False
        self.video_position = 0.0

    async def play_audio(self, audio: bytes, playback_id: int = 0) -> None:
        self.calls.append("play_audio")
        self.audio.append(audio)
        self.playback_ids.append(playback_id)

    async def stop_audio(self) -> None:
        self.calls.append("stop_audio")

    async def start_video_loop(self) -> None:
        self.calls.append("start_video_loop")
        self.video_playing = True
        self.video_position = 0.0

    async def stop_video_loop(self) -> None:
        self.calls.append("stop_video_loop")
        self.video_playing = False
        self.video_position = 0.0

    async def show_static_image(self) -> None:
        self.calls.append("show_static_image")

    def advance(self, seconds: float) -> None:
        if self.video_playing:
            self.video_position += seconds


async def wait_for_calls(provider, count: int) -> None:
    """Let the loop run until the fake has received ``count`` calls."""
    for _ in range(100):
        if len(provider.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} calls, got {len(provider.calls)}")


def make_history(*turns: tuple[Sender, str]) -> list[Message]:
    """Messages with consecutive turn indices starting at 1."""
    return [
        Message(sender=sender, text=text, turn_index=i)
        for i, (sender, text) in enumerate(turns, start=1)
    ]


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_tts():
    return FakeTTS()


@pytest.fixture
def sink():
    return RecordingSink()
