"""
OpenAI LLM Provider — chat completions for the persona's replies.

Supports OpenAI-compatible APIs (e.g., OpenRouter) via base_url; the
model gets a provider prefix there when it has none.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncGenerator

from openai import AsyncOpenAI, OpenAIError

import personacall.core.config as config_module
from personacall.core.metrics import metrics
from personacall.providers.base import LLMProvider

logger = logging.getLogger(__name__)


def _get_model_name() -> str:
    """Model name, prefixed with "openai/" when talking to OpenRouter."""
    llm = config_module.config.llm
    model = llm.model
    if "openrouter" in (llm.base_url or "").lower() and "/" not in model:
        model = f"openai/{model}"
    return model


class OpenAILLMProvider(LLMProvider):
    def __init__(self):
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return  # Already started

        llm = config_module.config.llm
        client_kwargs: dict = {}
        if llm.api_key:
            client_kwargs["api_key"] = llm.api_key
        if llm.base_url:
            client_kwargs["base_url"] = llm.base_url
            logger.info("Using custom base_url: %s", llm.base_url)

        try:
            self.client = AsyncOpenAI(**client_kwargs)
        except OpenAIError as e:
            # Replies fall back until a key is configured
            logger.warning("OpenAI LLM unavailable: %s", e)
            return
        logger.info("OpenAI LLM ready (model=%s)", _get_model_name())

    async def stop(self) -> None:
        self.client = None

    async def generate_stream(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.8,
    ) -> AsyncGenerator[str, None]:
        if not self.client:
            raise RuntimeError("OpenAI LLM not started")

        stream = await self.client.chat.completions.create(
            model=_get_model_name(),
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )

        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta.content:
                yield delta.content

    async def complete(
        self,
        messages: list[dict],
        max_tokens: int = 150,
        temperature: float = 0.8,
    ) -> str:
        """Non-streaming completion; replies are short enough to wait for."""
        if not self.client:
            raise RuntimeError("OpenAI LLM not started")

        started = time.time()
        metrics.inc("provider.llm.requests", labels={"provider": "openai"})
        try:
            response = await self.client.chat.completions.create(
                model=_get_model_name(),
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception:
            metrics.inc("provider.llm.errors", labels={"provider": "openai"})
            raise

        metrics.observe(
            "provider.llm.latency_ms",
            (time.time() - started) * 1000,
            labels={"provider": "openai"},
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def health_check(self) -> dict:
        status = "ready" if self.client else "not_started"
        return {
            "provider": "openai",
            "model": _get_model_name(),
            "status": status,
        }
