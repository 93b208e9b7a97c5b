"""
PersonaCall Configuration — single source of truth for all settings.

Reads from environment variables with sensible defaults.
A .env file in the working directory is honored via python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


def _voice_map(value: str) -> dict[str, str]:
    """Parse "male=onyx,female=alloy" into a dict."""
    voices: dict[str, str] = {}
    for pair in value.split(","):
        if "=" not in pair:
            continue
        category, voice = pair.split("=", 1)
        if category.strip() and voice.strip():
            voices[category.strip().lower()] = voice.strip()
    return voices


@dataclass(frozen=True)
class LLMConfig:
    """Text-generation provider settings."""

    provider: str = "openai"
    api_key: str = ""
    base_url: str = ""
    model: str = "gpt-4o"
    max_tokens: int = 150
    temperature: float = 0.8
    timeout: float = 20.0  # seconds, bounded wait for one reply
    max_history_turns: int = 20

    @classmethod
    def from_env(cls) -> LLMConfig:
        return cls(
            provider=os.getenv("PERSONACALL_LLM_PROVIDER", "openai"),
            api_key=os.getenv("OPENAI_API_KEY", ""),
            base_url=os.getenv("PERSONACALL_LLM_BASE_URL", ""),
            model=os.getenv("PERSONACALL_LLM_MODEL", "gpt-4o"),
            max_tokens=int(os.getenv("PERSONACALL_LLM_MAX_TOKENS", "150")),
            temperature=float(os.getenv("PERSONACALL_LLM_TEMPERATURE", "0.8")),
            timeout=float(os.getenv("PERSONACALL_LLM_TIMEOUT", "20.0")),
            max_history_turns=int(
                os.getenv("PERSONACALL_LLM_MAX_HISTORY_TURNS", "20")
            ),
        )


@dataclass(frozen=True)
class TTSConfig:
    """Speech-synthesis provider settings."""

    provider: str = "openai"
    api_key: str = ""
    model: str = "tts-1"
    speed: float = 1.1  # slightly quick, childlike delivery
    timeout: float = 15.0
    # ElevenLabs
    elevenlabs_api_key: str = ""
    elevenlabs_model: str = "eleven_multilingual_v2"
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"  # Rachel

    @classmethod
    def from_env(cls) -> TTSConfig:
        return cls(
            provider=os.getenv("PERSONACALL_TTS_PROVIDER", "openai"),
            api_key=os.getenv("OPENAI_API_KEY", ""),
            model=os.getenv("PERSONACALL_TTS_MODEL", "tts-1"),
            speed=float(os.getenv("PERSONACALL_TTS_SPEED", "1.1")),
            timeout=float(os.getenv("PERSONACALL_TTS_TIMEOUT", "15.0")),
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY", ""),
            elevenlabs_model=os.getenv(
                "PERSONACALL_ELEVENLABS_MODEL", "eleven_multilingual_v2"
            ),
            elevenlabs_voice_id=os.getenv(
                "PERSONACALL_ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM"
            ),
        )


@dataclass(frozen=True)
class DialogueConfig:
    """Conversation engine settings."""

    signal_window: int = 5  # recent user messages scanned for signal
    excerpt_turns: int = 5  # history entries quoted in the directive
    fallback_reply: str = "I didn't quite catch that, say it again?"
    # First line of a call: "video_call", "time_of_day", or an opener pool name
    opener_style: str = "video_call"

    @classmethod
    def from_env(cls) -> DialogueConfig:
        return cls(
            signal_window=int(os.getenv("PERSONACALL_SIGNAL_WINDOW", "5")),
            excerpt_turns=int(os.getenv("PERSONACALL_EXCERPT_TURNS", "5")),
            fallback_reply=os.getenv(
                "PERSONACALL_FALLBACK_REPLY",
                "I didn't quite catch that, say it again?",
            ),
            opener_style=os.getenv("PERSONACALL_OPENER_STYLE", "video_call").lower(),
        )


@dataclass(frozen=True)
class PersonaConfig:
    """Persona categories: voice per category and the static-image variant."""

    default_category: str = "male"
    pronoun: str = "I"
    voices: dict[str, str] = field(
        default_factory=lambda: {"male": "onyx", "female": "alloy"}
    )
    default_voice: str = "nova"
    # ElevenLabs voice ids per category; OpenAI voice names mean nothing there
    elevenlabs_voices: dict[str, str] = field(default_factory=dict)
    # Categories shown as a still image instead of the looping video track
    static_image_categories: tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> PersonaConfig:
        voices = _voice_map(
            os.getenv("PERSONACALL_PERSONA_VOICES", "male=onyx,female=alloy")
        )
        return cls(
            default_category=os.getenv(
                "PERSONACALL_PERSONA_DEFAULT_CATEGORY", "male"
            ).lower(),
            pronoun=os.getenv("PERSONACALL_PERSONA_PRONOUN", "I"),
            voices=voices,
            default_voice=os.getenv("PERSONACALL_PERSONA_DEFAULT_VOICE", "nova"),
            elevenlabs_voices=_voice_map(
                os.getenv("PERSONACALL_PERSONA_ELEVENLABS_VOICES", "")
            ),
            static_image_categories=_csv(
                os.getenv("PERSONACALL_STATIC_IMAGE_CATEGORIES", "")
            ),
        )


@dataclass(frozen=True)
class ServerConfig:
    """Server settings."""

    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> ServerConfig:
        return cls(
            host=os.getenv("PERSONACALL_HOST", "0.0.0.0"),
            port=int(os.getenv("PERSONACALL_PORT", "8000")),
        )


@dataclass(frozen=True)
class PersonaCallConfig:
    """Root configuration."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    persona: PersonaConfig = field(default_factory=PersonaConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> PersonaCallConfig:
        return cls(
            llm=LLMConfig.from_env(),
            tts=TTSConfig.from_env(),
            dialogue=DialogueConfig.from_env(),
            persona=PersonaConfig.from_env(),
            server=ServerConfig.from_env(),
        )


# Singleton. Import the module and read config_module.config so reloads are seen
config = PersonaCallConfig.from_env()


def reload_config() -> PersonaCallConfig:
    """Re-read the environment into the module singleton."""
    global config
    config = PersonaCallConfig.from_env()
    return config
