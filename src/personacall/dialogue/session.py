"""
DialogueSession — owns the conversation for one call.

Holds the ordered history, the turn counter and the persona. Every new
message goes through a single increment of the turn counter, so turn
indices are gap-free and strictly increasing. The stage is derived from
the counter and only cached until the next increment.

Replies are guarded by a turn token: request_reply() captures the turn
index when it starts, and a reply that comes back after the session has
moved on is dropped instead of being appended out of order.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from typing import TYPE_CHECKING, Iterable, Sequence

from personacall.core.errors import StaleResultError, TransientProviderError
from personacall.core.logging import TurnTimer
from personacall.core.metrics import metrics
from personacall.dialogue.directives import PromptAssembler
from personacall.dialogue.models import (
    DirectivePayload,
    Message,
    PersonaProfile,
    Recommendation,
    Sender,
    SignalProfile,
    Stage,
)
from personacall.dialogue.openers import pick_opener
from personacall.dialogue.stages import stage_for_turn

if TYPE_CHECKING:
    from personacall.providers.base import LLMProvider
    from personacall.recommend.recommender import Recommender

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_REPLY = "I didn't quite catch that, say it again?"


class DialogueSession:
    """
    Turn-indexed conversation state for exactly one call.

    Upstream callers submit one utterance at a time:
        session.append_user_turn("I've been so busy at work")
        reply = await session.request_reply()
    """

    def __init__(
        self,
        llm_provider: "LLMProvider",
        persona: PersonaProfile | None = None,
        *,
        assembler: PromptAssembler | None = None,
        recommender: "Recommender | None" = None,
        initial_history: Iterable[Message] = (),
        call_id: str | None = None,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
        opener_category: str | None = None,
        llm_timeout: float = 20.0,
        max_tokens: int = 150,
        temperature: float = 0.8,
        max_history_turns: int = 20,
        rng: random.Random | None = None,
    ) -> None:
        self.llm_provider = llm_provider
        self.persona = persona or PersonaProfile()
        self.assembler = assembler or PromptAssembler()
        self.recommender = recommender
        self.call_id = call_id or str(uuid.uuid4())
        self.fallback_reply = fallback_reply
        self.opener_category = opener_category
        self.llm_timeout = llm_timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_history_turns = max_history_turns
        self._rng = rng or random.Random()

        self._history: list[Message] = []
        self._ids: set[str] = set()
        self._turn_counter = 0
        self._stage_cache: Stage | None = None
        self.last_directive: DirectivePayload | None = None

        for message in sorted(initial_history, key=lambda m: m.turn_index):
            self._seed(message)

    # ─── State ───────────────────────────────────────────────────

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self._history)

    @property
    def turn_index(self) -> int:
        """Current turn counter (index of the latest message, 0 before any)."""
        return self._turn_counter

    @property
    def stage(self) -> Stage:
        if self._stage_cache is None:
            self._stage_cache = stage_for_turn(self._turn_counter)
        return self._stage_cache

    def is_current(self, turn_index: int) -> bool:
        """Whether a request issued at ``turn_index`` may still commit."""
        return turn_index == self._turn_counter

    def _increment_and_get(self) -> int:
        self._turn_counter += 1
        self._stage_cache = None
        return self._turn_counter

    def _seed(self, message: Message) -> None:
        if message.id in self._ids:
            return
        if message.turn_index <= self._turn_counter:
            raise ValueError(
                f"initial history out of order at turn {message.turn_index}"
            )
        self._history.append(message)
        self._ids.add(message.id)
        self._turn_counter = message.turn_index
        self._stage_cache = None

    def _commit(
        self,
        sender: Sender,
        text: str,
        recommendation: Recommendation | None = None,
    ) -> Message:
        message = Message(
            sender=sender,
            text=text,
            turn_index=self._increment_and_get(),
            recommendation=recommendation,
        )
        self._history.append(message)
        self._ids.add(message.id)
        return message

    # ─── Turns ───────────────────────────────────────────────────

    def append_user_turn(self, text: str) -> Message:
        """Record what the user said as the next turn."""
        if not text or not text.strip():
            raise ValueError("user turn text must be non-empty")
        message = self._commit(Sender.USER, text.strip())
        logger.info(
            "User turn %d: %r",
            message.turn_index,
            message.text[:80],
            extra={"call_id": self.call_id, "turn_index": message.turn_index},
        )
        return message

    def update_history(self, message: Message) -> bool:
        """Append an externally built message; a known id is a silent no-op.

        Returns True when the message was appended.
        """
        if message.id in self._ids:
            return False
        expected = self._turn_counter + 1
        if message.turn_index != expected:
            raise ValueError(
                f"message turn {message.turn_index} does not follow turn "
                f"{self._turn_counter}"
            )
        self._increment_and_get()
        self._history.append(message)
        self._ids.add(message.id)
        return True

    def open_call(self, signal: SignalProfile | None = None) -> Message | None:
        """Persona's first line. Only once, and only on an empty history."""
        if self._history:
            return None
        mood = signal.mood if signal and signal.confidence > 0 else None
        opener = pick_opener(mood=mood, category=self.opener_category, rng=self._rng)
        message = self._commit(Sender.AGENT, opener)
        logger.info(
            "Call opened: %r",
            message.text[:80],
            extra={"call_id": self.call_id, "turn_index": message.turn_index},
        )
        return message

    async def request_reply(self, timer: TurnTimer | None = None) -> Message | None:
        """Generate and append the persona's reply for the current turn.

        Provider failures and timeouts append the fallback reply instead;
        a failed turn still counts as a turn. Returns None when the result
        went stale because the session moved on while it was in flight.
        Pass a TurnTimer to keep timing the turn past the reply (speech).
        """
        token = self._turn_counter
        timer = timer or TurnTimer()

        payload = self.assembler.assemble(self)
        self.last_directive = payload
        timer.mark("directive")

        recommendation: Recommendation | None = None
        try:
            raw = await self._generate(payload)
            text, recommendation = self._decorate(raw)
        except TransientProviderError as e:
            logger.warning(
                "Reply failed, using fallback: %s",
                e,
                extra={"call_id": self.call_id, "turn_index": token},
            )
            metrics.inc("dialogue.fallbacks")
            text = self.fallback_reply
        timer.mark("llm")

        try:
            self._check_fresh(token)
        except StaleResultError as e:
            logger.debug("Dropping reply: %s", e)
            metrics.inc("dialogue.stale_discarded", labels={"source": "llm"})
            return None

        message = self._commit(Sender.AGENT, text, recommendation)
        logger.info(
            "Agent turn %d (%s): %r [%s]",
            message.turn_index,
            payload.template,
            message.text[:80],
            timer.summary(),
            extra={
                "call_id": self.call_id,
                "turn_index": message.turn_index,
                "stage": payload.stage.value,
                "duration_ms": round(timer.total() * 1000, 1),
            },
        )
        return message

    # ─── Helpers ─────────────────────────────────────────────────

    def _check_fresh(self, token: int) -> None:
        if not self.is_current(token):
            raise StaleResultError(token, self._turn_counter)

    def build_messages(self, payload: DirectivePayload) -> list[dict]:
        """OpenAI-style messages: directive as system, then role-tagged history."""
        messages: list[dict] = [{"role": "system", "content": payload.directive}]
        recent: Sequence[Message] = self._history[-self.max_history_turns:]
        messages.extend({"role": m.role, "content": m.text} for m in recent)
        return messages

    async def _generate(self, payload: DirectivePayload) -> str:
        messages = self.build_messages(payload)
        provider = self.llm_provider.__class__.__name__
        started = time.time()
        try:
            text = await asyncio.wait_for(
                self.llm_provider.complete(
                    messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.llm_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientProviderError(
                provider, f"timed out after {self.llm_timeout}s"
            ) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransientProviderError(provider, str(e) or type(e).__name__) from e
        finally:
            metrics.observe("dialogue.llm_ms", (time.time() - started) * 1000)

        if not text or not text.strip():
            raise TransientProviderError(provider, "empty reply")
        return text.strip()

    def _decorate(self, raw: str) -> tuple[str, Recommendation | None]:
        """Strip an embedded recommendation tag and resolve it."""
        if self.recommender is None:
            return raw, None
        result = self.recommender.inspect(raw)
        if result is None:
            return raw, None
        text = result.stripped_text or self.fallback_reply
        return text, result.recommendation
