"""
ElevenLabs TTS Provider — alternative speech synthesis.

REST API: POST https://api.elevenlabs.io/v1/text-to-speech/{voice_id}
Returns raw MP3 bytes. The persona voice profile is used as the voice id.
"""

from __future__ import annotations

import logging
import time

import httpx

import personacall.core.config as config_module
from personacall.core.metrics import metrics
from personacall.providers.base import TTSProvider

logger = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech"


class ElevenLabsTTSProvider(TTSProvider):
    def __init__(self):
        self.client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        if self.client:
            return  # Already started
        tts = config_module.config.tts
        if not tts.elevenlabs_api_key:
            logger.warning("ELEVENLABS_API_KEY not set, calls will be silent")
            return

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(tts.timeout),
            headers={
                "xi-api-key": tts.elevenlabs_api_key,
                "Content-Type": "application/json",
            },
        )
        logger.info("ElevenLabs TTS ready (model=%s)", tts.elevenlabs_model)

    async def stop(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def synthesize(self, text: str, voice: str) -> bytes:
        if not self.client:
            raise RuntimeError("ElevenLabs TTS not started")

        started = time.time()
        metrics.inc("provider.tts.requests", labels={"provider": "elevenlabs"})

        try:
            response = await self.client.post(
                f"{ELEVENLABS_TTS_URL}/{voice}",
                json={
                    "text": text,
                    "model_id": config_module.config.tts.elevenlabs_model,
                },
            )
            response.raise_for_status()
            audio = response.content

            metrics.observe(
                "provider.tts.latency_ms",
                (time.time() - started) * 1000,
                labels={"provider": "elevenlabs"},
            )
            return audio
        except Exception:
            metrics.inc("provider.tts.errors", labels={"provider": "elevenlabs"})
            raise

    async def health_check(self) -> dict:
        status = "ready" if self.client else "not_started"
        return {
            "provider": "elevenlabs",
            "model": config_module.config.tts.elevenlabs_model,
            "status": status,
        }
