"""
Provider base classes — the two outbound boundaries of a call.

LLMProvider turns a directive plus history into reply text.
TTSProvider turns reply text into audio for a given voice.
Implementations must honor these contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncGenerator


class LLMProvider(ABC):
    """Language model provider interface."""

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def generate_stream(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.8,
    ) -> AsyncGenerator[str, None]:
        """Stream response tokens. Yields strings as they arrive."""
        yield  # type: ignore

    async def complete(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.8,
    ) -> str:
        """Whole reply as one string. Default joins generate_stream."""
        parts: list[str] = []
        async for token in self.generate_stream(messages, max_tokens, temperature):
            parts.append(token)
        return "".join(parts)

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}


class TTSProvider(ABC):
    """Text-to-speech provider interface."""

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def synthesize(self, text: str, voice: str) -> bytes:
        """Convert text to audio bytes in the given voice."""
        ...

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}
