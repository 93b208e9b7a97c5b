"""
Playback sinks — the only place audio and video actually get played.

MediaSyncController owns exactly one sink per call and is the only
caller. stop_video_loop() always rewinds the loop to its first frame.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod

from personacall.kernel.event_bus import EventBus, media_topic

logger = logging.getLogger(__name__)


class PlaybackSink(ABC):
    """Audio/video output for one call."""

    @abstractmethod
    async def play_audio(self, audio: bytes, playback_id: int = 0) -> None:
        ...

    @abstractmethod
    async def stop_audio(self) -> None:
        ...

    @abstractmethod
    async def start_video_loop(self) -> None:
        """Start the looping persona video from position 0."""
        ...

    @abstractmethod
    async def stop_video_loop(self) -> None:
        """Stop the loop and reset its position to 0."""
        ...

    @abstractmethod
    async def show_static_image(self) -> None:
        ...


class EventBusSink(PlaybackSink):
    """Publishes playback commands for a remote client to execute.

    The client plays the audio it receives and reports the end of
    playback back through the HTTP layer.
    """

    def __init__(self, bus: EventBus, call_id: str):
        self.bus = bus
        self.call_id = call_id
        self.topic = media_topic(call_id)

    async def _send(self, event: dict) -> None:
        delivered = await self.bus.publish(self.topic, event)
        logger.debug("Media %s -> %d subscriber(s)", event["type"], delivered)

    async def play_audio(self, audio: bytes, playback_id: int = 0) -> None:
        await self._send(
            {
                "type": "play_audio",
                "playback_id": playback_id,
                "format": "mp3",
                "audio": base64.b64encode(audio).decode("ascii"),
            }
        )

    async def stop_audio(self) -> None:
        await self._send({"type": "stop_audio"})

    async def start_video_loop(self) -> None:
        await self._send({"type": "start_video_loop", "position": 0.0})

    async def stop_video_loop(self) -> None:
        await self._send({"type": "stop_video_loop", "position": 0.0})

    async def show_static_image(self) -> None:
        await self._send({"type": "show_static_image"})
