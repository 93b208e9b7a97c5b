"""
VideoCall — one persona video call, end to end.

Wires one DialogueSession to one MediaSyncController:

    user text -> interrupt playback -> append turn -> request reply
              -> speak reply (dropped if a newer turn arrived meanwhile)

CallManager keeps the live calls of the process, keyed by call id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

import personacall.core.config as config_module
from personacall.core.config import PersonaConfig, TTSConfig
from personacall.core.logging import TurnTimer
from personacall.core.metrics import metrics
from personacall.dialogue.directives import PromptAssembler
from personacall.dialogue.models import Message, PersonaProfile, Stage
from personacall.dialogue.session import DialogueSession
from personacall.dialogue.signals import SignalExtractor
from personacall.kernel.event_bus import EventBus, media_topic, state_topic
from personacall.media.sink import EventBusSink, PlaybackSink
from personacall.media.sync import MediaSyncController, PlaybackState
from personacall.providers.base import LLMProvider, TTSProvider
from personacall.recommend.recommender import Recommender

logger = logging.getLogger(__name__)


def build_persona(
    category: str | None = None,
    settings: PersonaConfig | None = None,
    tts: TTSConfig | None = None,
) -> PersonaProfile:
    """Resolve a persona category into its voice and display variant.

    The voice is looked up in the map of the configured speech provider.
    """
    settings = settings or config_module.config.persona
    tts = tts or config_module.config.tts
    category = (category or settings.default_category).strip().lower()
    if tts.provider.lower() == "elevenlabs":
        voice = settings.elevenlabs_voices.get(category, tts.elevenlabs_voice_id)
    else:
        voice = settings.voices.get(category, settings.default_voice)
    return PersonaProfile(
        category=category,
        pronoun=settings.pronoun,
        voice_profile=voice,
        supports_video_loop=category not in settings.static_image_categories,
    )


@dataclass(frozen=True)
class CallSnapshot:
    """What a client needs to render the call after each turn."""

    call_id: str
    history: tuple[Message, ...]
    stage: Stage
    turn_index: int
    playback_state: PlaybackState
    playback_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_id": self.call_id,
            "stage": self.stage.value,
            "turn_index": self.turn_index,
            "playback_state": self.playback_state.value,
            "playback_id": self.playback_id,
            "history": [m.to_dict() for m in self.history],
        }


class VideoCall:
    def __init__(
        self,
        session: DialogueSession,
        media: MediaSyncController,
        bus: EventBus | None = None,
    ):
        self.session = session
        self.media = media
        self.bus = bus
        self.call_id = session.call_id
        self.ended = False
        if bus is not None:
            self.media.on_state_change = self._publish_state

    @classmethod
    def create(
        cls,
        llm: LLMProvider,
        tts: TTSProvider,
        *,
        persona_category: str | None = None,
        bus: EventBus | None = None,
        sink: PlaybackSink | None = None,
        recommender: Recommender | None = None,
        initial_history: tuple[Message, ...] = (),
        call_id: str | None = None,
    ) -> VideoCall:
        """Build a call from config. Needs either a bus or an explicit sink."""
        cfg = config_module.config
        call_id = call_id or str(uuid.uuid4())
        persona = build_persona(persona_category, cfg.persona, cfg.tts)

        if sink is None:
            if bus is None:
                raise ValueError("VideoCall.create needs a bus or a sink")
            sink = EventBusSink(bus, call_id)

        assembler = PromptAssembler(
            extractor=SignalExtractor(window_size=cfg.dialogue.signal_window),
            excerpt_turns=cfg.dialogue.excerpt_turns,
            recommendation_categories=recommender.categories if recommender else (),
        )
        session = DialogueSession(
            llm,
            persona,
            assembler=assembler,
            recommender=recommender,
            initial_history=initial_history,
            call_id=call_id,
            fallback_reply=cfg.dialogue.fallback_reply,
            opener_category=cfg.dialogue.opener_style,
            llm_timeout=cfg.llm.timeout,
            max_tokens=cfg.llm.max_tokens,
            temperature=cfg.llm.temperature,
            max_history_turns=cfg.llm.max_history_turns,
        )
        media = MediaSyncController(
            tts,
            sink,
            supports_video_loop=persona.supports_video_loop,
            tts_timeout=cfg.tts.timeout,
            call_id=call_id,
        )
        return cls(session, media, bus=bus)

    @property
    def persona(self) -> PersonaProfile:
        return self.session.persona

    def snapshot(self) -> CallSnapshot:
        return CallSnapshot(
            call_id=self.call_id,
            history=self.session.history,
            stage=self.session.stage,
            turn_index=self.session.turn_index,
            playback_state=self.media.state,
            playback_id=self.media.playback_id,
        )

    # ─── Turns ───────────────────────────────────────────────────

    async def start(self) -> CallSnapshot:
        """Persona greets first. A second start() changes nothing."""
        opener = self.session.open_call()
        if opener is not None:
            await self._speak(opener)
        return self.snapshot()

    async def submit(self, text: str) -> CallSnapshot:
        """One user utterance. Raises ValueError on empty text."""
        if self.ended:
            raise RuntimeError(f"call {self.call_id} has ended")
        if not text or not text.strip():
            raise ValueError("user turn text must be non-empty")

        # Barge-in: the user talking over the persona cuts it off
        await self.media.interrupt()
        self.session.append_user_turn(text)
        metrics.inc("call.turns")

        timer = TurnTimer()
        reply = await self.session.request_reply(timer)
        if reply is not None:
            await self._publish_message(reply)
            await self._speak(reply)
            timer.mark("tts")
            logger.info(
                "Turn %d done [%s]",
                reply.turn_index,
                timer.summary(),
                extra={
                    "call_id": self.call_id,
                    "turn_index": reply.turn_index,
                    "duration_ms": round(timer.total() * 1000, 1),
                },
            )
        return self.snapshot()

    async def playback_ended(self, playback_id: int | None = None) -> CallSnapshot:
        await self.media.on_playback_ended(playback_id)
        return self.snapshot()

    async def end(self) -> None:
        if self.ended:
            return
        self.ended = True
        await self.media.interrupt()
        if self.bus is not None:
            await self.bus.publish_end(media_topic(self.call_id))
            await self.bus.publish_end(state_topic(self.call_id))
        logger.info(
            "Call ended after %d turns",
            self.session.turn_index,
            extra={"call_id": self.call_id, "status": "ended"},
        )

    async def _speak(self, message: Message) -> None:
        turn = message.turn_index
        await self.media.speak(
            message.text,
            self.persona.voice_profile,
            is_current=lambda: self.session.is_current(turn),
        )

    # ─── Events ──────────────────────────────────────────────────

    async def _publish_state(self, state: PlaybackState) -> None:
        if self.bus is None:
            return
        await self.bus.publish(
            state_topic(self.call_id),
            {
                "type": "playback_state",
                "state": state.value,
                "playback_id": self.media.playback_id,
            },
        )

    async def _publish_message(self, message: Message) -> None:
        if self.bus is None:
            return
        await self.bus.publish(
            state_topic(self.call_id),
            {"type": "message", "message": message.to_dict()},
        )


class CallManager:
    """Live calls of this process."""

    def __init__(
        self,
        llm: LLMProvider,
        tts: TTSProvider,
        bus: EventBus,
        recommender: Recommender | None = None,
    ):
        self.llm = llm
        self.tts = tts
        self.bus = bus
        self.recommender = recommender
        self._calls: dict[str, VideoCall] = {}

    def create(
        self,
        persona_category: str | None = None,
        call_id: str | None = None,
    ) -> VideoCall:
        call = VideoCall.create(
            self.llm,
            self.tts,
            persona_category=persona_category,
            bus=self.bus,
            recommender=self.recommender,
            call_id=call_id,
        )
        self._calls[call.call_id] = call
        metrics.inc("call.created", labels={"persona": call.persona.category})
        logger.info(
            "Call created (persona=%s, video_loop=%s)",
            call.persona.category,
            call.persona.supports_video_loop,
            extra={"call_id": call.call_id},
        )
        return call

    def get(self, call_id: str) -> VideoCall | None:
        return self._calls.get(call_id)

    async def end(self, call_id: str) -> bool:
        call = self._calls.pop(call_id, None)
        if call is None:
            return False
        await call.end()
        return True

    async def end_all(self) -> None:
        for call_id in list(self._calls):
            await self.end(call_id)

    def active(self) -> list[str]:
        return list(self._calls)
