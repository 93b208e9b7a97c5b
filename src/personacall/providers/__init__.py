"""
PersonaCall Providers — abstract interfaces for text generation and speech.

Concrete implementations (OpenAI, ElevenLabs) live alongside.
Swap providers by changing config.
"""

from personacall.providers.base import LLMProvider, TTSProvider
from personacall.providers.registry import get_llm_provider, get_tts_provider

__all__ = [
    "LLMProvider",
    "TTSProvider",
    "get_llm_provider",
    "get_tts_provider",
]
