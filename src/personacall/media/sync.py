"""
Media Sync — keeps the persona's voice and looping video in step.

States cycle Idle -> Playing -> Stopped -> Idle:
- speak() fetches speech, then starts audio and the video loop back to back
- the end of audio, or interrupt(), stops both and rewinds the video
- Stopped falls through to Idle immediately

speak() with the same text as the one currently in flight or playing is
a silent no-op. Every speak() takes a generation number; interrupt()
bumps it, so speech that finishes synthesizing after an interruption
is never played.

Speech synthesis failures and timeouts are logged and swallowed: the
reply text has already been shown, it just isn't heard.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable

from personacall.core.errors import (
    DuplicateUtteranceError,
    StaleResultError,
    TransientProviderError,
)
from personacall.core.metrics import metrics
from personacall.media.sink import PlaybackSink
from personacall.providers.base import TTSProvider

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"


class MediaSyncController:
    """Sole owner of a call's playback sink."""

    def __init__(
        self,
        tts: TTSProvider,
        sink: PlaybackSink,
        *,
        supports_video_loop: bool = True,
        tts_timeout: float = 15.0,
        call_id: str = "",
    ) -> None:
        self.tts = tts
        self.sink = sink
        self.supports_video_loop = supports_video_loop
        self.tts_timeout = tts_timeout
        self.call_id = call_id

        self._state = PlaybackState.IDLE
        self._last_spoken_text: str | None = None
        self._generation = 0
        self._playback_id = 0

        # Called on every state change, e.g. to publish it to a client
        self.on_state_change: Callable[[PlaybackState], Awaitable[None]] | None = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def last_spoken_text(self) -> str | None:
        return self._last_spoken_text

    @property
    def playback_id(self) -> int:
        """Id of the current (or last) playback, reported back on audio end."""
        return self._playback_id

    async def _set_state(self, state: PlaybackState) -> None:
        self._state = state
        if self.on_state_change:
            await self.on_state_change(state)

    # ─── Speak ───────────────────────────────────────────────────

    async def speak(
        self,
        text: str,
        voice_profile: str,
        is_current: Callable[[], bool] | None = None,
    ) -> bool:
        """Synthesize and play one utterance. Returns True if playback started.

        ``is_current`` is checked once speech is ready; returning False
        means the turn this speech belongs to is over and it is dropped.
        """
        if not text or not text.strip():
            return False
        try:
            self._check_duplicate(text)
        except DuplicateUtteranceError as e:
            logger.debug("Skipping speak: %s", e)
            metrics.inc("media.duplicates_suppressed")
            return False

        self._last_spoken_text = text
        self._generation += 1
        generation = self._generation

        try:
            audio = await self._synthesize(text, voice_profile)
        except TransientProviderError as e:
            logger.warning(
                "Speech skipped: %s", e, extra={"call_id": self.call_id}
            )
            metrics.inc("media.tts_failures")
            if generation == self._generation:
                self._last_spoken_text = None
            return False

        try:
            self._check_current(generation, is_current)
        except StaleResultError as e:
            logger.debug("Dropping speech: %s", e)
            metrics.inc("dialogue.stale_discarded", labels={"source": "tts"})
            if generation == self._generation:
                self._last_spoken_text = None
            return False

        if self._state == PlaybackState.PLAYING:
            await self._halt()

        self._playback_id += 1
        await self._set_state(PlaybackState.PLAYING)
        # Audio and visual start back to back, no enforced delay between them
        await self.sink.play_audio(audio, playback_id=self._playback_id)
        if self.supports_video_loop:
            await self.sink.start_video_loop()
        else:
            await self.sink.show_static_image()

        metrics.inc("media.playbacks")
        logger.info(
            "Playing %d bytes: %r",
            len(audio),
            text[:60],
            extra={"call_id": self.call_id, "status": "playing"},
        )
        return True

    def _check_duplicate(self, text: str) -> None:
        if text == self._last_spoken_text:
            raise DuplicateUtteranceError(text)

    def _check_current(
        self, generation: int, is_current: Callable[[], bool] | None
    ) -> None:
        if generation != self._generation:
            raise StaleResultError(generation, self._generation)
        if is_current is not None and not is_current():
            raise StaleResultError(generation, self._generation)

    async def _synthesize(self, text: str, voice_profile: str) -> bytes:
        provider = self.tts.__class__.__name__
        started = time.time()
        try:
            audio = await asyncio.wait_for(
                self.tts.synthesize(text, voice_profile),
                timeout=self.tts_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientProviderError(
                provider, f"timed out after {self.tts_timeout}s"
            ) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransientProviderError(provider, str(e) or type(e).__name__) from e
        finally:
            metrics.observe("media.tts_ms", (time.time() - started) * 1000)

        if not audio:
            raise TransientProviderError(provider, "no audio returned")
        return audio

    # ─── Stop ────────────────────────────────────────────────────

    async def _halt(self) -> None:
        await self.sink.stop_audio()
        if self.supports_video_loop:
            await self.sink.stop_video_loop()

    async def _finish(self) -> None:
        await self._set_state(PlaybackState.STOPPED)
        self._last_spoken_text = None
        await self._set_state(PlaybackState.IDLE)

    async def interrupt(self) -> bool:
        """Barge-in: cut playback and abandon any speech still being fetched.

        Returns True if something was playing.
        """
        self._generation += 1
        self._last_spoken_text = None
        if self._state != PlaybackState.PLAYING:
            return False

        await self._halt()
        await self._finish()
        metrics.inc("media.interruptions")
        logger.info("Playback interrupted", extra={"call_id": self.call_id})
        return True

    async def on_playback_ended(self, playback_id: int | None = None) -> bool:
        """The sink finished playing the audio on its own.

        A report for an older playback (already interrupted or replaced)
        is ignored. Returns True if it ended the current playback.
        """
        if self._state != PlaybackState.PLAYING:
            return False
        if playback_id is not None and playback_id != self._playback_id:
            logger.debug(
                "Ignoring end of playback %d (current %d)",
                playback_id,
                self._playback_id,
            )
            return False

        if self.supports_video_loop:
            await self.sink.stop_video_loop()
        await self._finish()
        return True
