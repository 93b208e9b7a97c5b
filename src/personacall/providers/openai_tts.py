"""
OpenAI TTS Provider — text-to-speech synthesis.

Returns MP3 bytes. The voice is chosen per call from the persona
category, so it is a synthesize() argument rather than config.
Timeout protection is handled by the media sync controller.
"""

from __future__ import annotations

import logging
import time

from openai import AsyncOpenAI, OpenAIError

import personacall.core.config as config_module
from personacall.core.metrics import metrics
from personacall.providers.base import TTSProvider

logger = logging.getLogger(__name__)


class OpenAITTSProvider(TTSProvider):
    def __init__(self):
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return  # Already started
        tts = config_module.config.tts
        try:
            self.client = (
                AsyncOpenAI(api_key=tts.api_key) if tts.api_key else AsyncOpenAI()
            )
        except OpenAIError as e:
            logger.warning("OpenAI TTS unavailable, calls will be silent: %s", e)
            return
        logger.info("OpenAI TTS ready (model=%s)", tts.model)

    async def stop(self) -> None:
        self.client = None

    async def synthesize(self, text: str, voice: str) -> bytes:
        if not self.client:
            raise RuntimeError("OpenAI TTS not started")

        tts = config_module.config.tts
        started = time.time()
        metrics.inc("provider.tts.requests", labels={"provider": "openai"})

        try:
            response = await self.client.audio.speech.create(
                model=tts.model,
                voice=voice,
                input=text,
                speed=tts.speed,
                response_format="mp3",
            )
            audio = response.content
            metrics.observe(
                "provider.tts.latency_ms",
                (time.time() - started) * 1000,
                labels={"provider": "openai"},
            )
            return audio
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "openai"})
            raise

    async def health_check(self) -> dict:
        status = "ready" if self.client else "not_started"
        return {
            "provider": "openai",
            "model": config_module.config.tts.model,
            "status": status,
        }
