"""
Provider Registry — factory functions to get the right provider by config.

Add a new provider? Just add an elif.
"""

from __future__ import annotations

import personacall.core.config as config_module
from personacall.providers.base import LLMProvider, TTSProvider


def get_llm_provider() -> LLMProvider:
    provider = config_module.config.llm.provider.lower()
    if provider in ("openai", "openrouter"):
        from personacall.providers.openai_llm import OpenAILLMProvider

        return OpenAILLMProvider()
    raise ValueError(f"Unknown LLM provider: {provider}")


def get_tts_provider() -> TTSProvider:
    provider = config_module.config.tts.provider.lower()
    if provider == "openai":
        from personacall.providers.openai_tts import OpenAITTSProvider

        return OpenAITTSProvider()
    elif provider == "elevenlabs":
        from personacall.providers.elevenlabs_tts import ElevenLabsTTSProvider

        return ElevenLabsTTSProvider()
    raise ValueError(f"Unknown TTS provider: {provider}")
