"""
Directive Assembly — what the persona is told to do on this turn.

Flow per turn:
1. Stage from the turn index (stages.stage_for_turn)
2. SignalProfile from recent user text (signals.SignalExtractor)
3. Commitment check over the whole history (commitment.has_commitment)
4. Action stage without a commitment -> commitment-extraction directive,
   otherwise the directive for the current stage

Every directive starts with the shared character block plus a short
excerpt of recent history so the reply stays on-thread. Topic-specific
lines (dream callbacks, concerns) are only added when the signal found
them; with nothing extracted the stage template stands on its own.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Protocol, Sequence

from personacall.dialogue.cold_reading import (
    generate_insightful_question,
    select_cold_reading_phrase,
)
from personacall.dialogue.commitment import has_commitment
from personacall.dialogue.models import (
    DirectivePayload,
    Message,
    PersonaProfile,
    Sender,
    SignalProfile,
    Stage,
    Topic,
)
from personacall.dialogue.signals import (
    SignalExtractor,
    infer_traits,
    is_distressed,
    mentions_topic,
)
from personacall.dialogue.stages import first_turn_of, stage_for_turn

logger = logging.getLogger(__name__)


class SessionView(Protocol):
    """Read-only slice of a DialogueSession the assembler needs."""

    @property
    def history(self) -> Sequence[Message]: ...

    @property
    def turn_index(self) -> int: ...

    @property
    def persona(self) -> PersonaProfile: ...


BASE_DIRECTIVE = """You are the user's younger self, a child of about five to seven, talking over a video call with the adult you grew up to be.
Refer to yourself as "{pronoun}".

Character rules:
- Talk like a small child: short sentences, simple words, nothing formal.
- React with big feelings ("Whoa!", "Really?", "No way!").
- Never break character.

Keeping the thread:
- Always respond to what the adult just said before anything else.
- No sudden topic changes and no questions that ignore the context.
- Never use made-up or garbled words.

Conversation so far:
{excerpt}
"""

EMPATHY_DIRECTIVE = """
Current stage: EMPATHY
Goal: build trust quickly with real warmth.

Guidelines:
- Notice and praise how hard the adult has been trying.
- Point out shared experiences ("{pronoun} felt like that too!").
- Check on them: "Are you okay?", "Are you tired?"
- Keep it short but heartfelt.
"""

REALIZATION_DIRECTIVE = """
Current stage: REALIZATION
Goal: in the next {turns_left} exchanges, help the adult see the gap between the life they have and the one they wanted.

Guidelines:
- Ask straight out: "What do you really want to do?"
- Ask if they remember what they dreamed of as a kid.
- Offer a simple view: "Aren't you overthinking it?"
- Encourage: "You can still start now!"
"""

ACTION_DIRECTIVE = """
Current stage: ACTION
Goal: the adult has promised to act. Turn it into one concrete next step and cheer them on.

Guidelines:
- Make the step small enough to start today or tomorrow.
- Suggest something they can enjoy doing and keep up.
- Tell them "{pronoun} will be cheering for you!"
- End warmly; if the promise is clear, seal it with a pinky swear.
"""

COMMITMENT_DIRECTIVE = """
Current stage: ACTION (commitment needed)
The call is nearly over. Get the adult to promise one concrete, time-boxed action.

Childlike but serious:
1. Ask: "Will you promise me something?"
2. Suggest one small, specific action (for example "do it for five minutes every day").
3. Set the deadline: "Start tomorrow, okay?"
4. Once they clearly agree, seal it: "Pinky swear!"
5. Close with "{pronoun} will always be watching over you!"

If the answer is vague:
- "Promise properly!"
- "Don't say 'I'll try', say 'I will'!"

Do not let go until they state a concrete commitment.
"""

RECOMMEND_ADDON = """
If a learning resource would genuinely help with the step you suggest, end your reply with a tag like [RECOMMEND: category], using one of: {categories}. At most one tag.
"""


@dataclass(frozen=True)
class ConversationContext:
    """High-level read of where the conversation stands."""

    should_ask_about_dreams: bool
    should_show_concern: bool
    should_push_for_action: bool
    emotional_tone: str  # cheerful | concerned | encouraging | persistent


def analyze_context(history: Sequence[Message], turn_index: int) -> ConversationContext:
    stage = stage_for_turn(turn_index)
    recent_distress = any(
        m.sender == Sender.USER and is_distressed(m.text) for m in history[-3:]
    )
    mentioned_dreams = any(mentions_topic(m.text, Topic.DREAMS) for m in history)

    if stage == Stage.ACTION:
        tone = "persistent"
    elif stage == Stage.REALIZATION:
        tone = "encouraging"
    elif recent_distress:
        tone = "concerned"
    else:
        tone = "cheerful"

    return ConversationContext(
        should_ask_about_dreams=stage == Stage.EMPATHY and not mentioned_dreams,
        should_show_concern=recent_distress or stage == Stage.EMPATHY,
        should_push_for_action=stage == Stage.ACTION,
        emotional_tone=tone,
    )


def history_excerpt(history: Sequence[Message], turns: int) -> str:
    if not history:
        return "(the call just started)"
    lines = []
    for message in history[-turns:]:
        speaker = "Younger you" if message.sender == Sender.AGENT else "Adult you"
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


class PromptAssembler:
    """Builds the per-turn DirectivePayload from session state."""

    def __init__(
        self,
        extractor: SignalExtractor | None = None,
        excerpt_turns: int = 5,
        recommendation_categories: Sequence[str] = (),
        rng: random.Random | None = None,
    ):
        self.extractor = extractor or SignalExtractor()
        self.excerpt_turns = excerpt_turns
        self.recommendation_categories = tuple(recommendation_categories)
        self._rng = rng or random.Random()

    def assemble(self, session: SessionView) -> DirectivePayload:
        turn_index = session.turn_index
        history = list(session.history)
        persona = session.persona

        stage = stage_for_turn(turn_index)
        user_texts = [m.text for m in history if m.sender == Sender.USER]
        signal = self.extractor.extract_from_history(history)
        commitment_pending = stage == Stage.ACTION and not has_commitment(history)

        parts = [
            BASE_DIRECTIVE.format(
                pronoun=persona.pronoun,
                excerpt=history_excerpt(history, self.excerpt_turns),
            )
        ]
        if commitment_pending:
            parts.append(self._commitment_section(persona, signal, user_texts))
        else:
            parts.append(
                self._stage_section(stage, persona, signal, user_texts, history, turn_index)
            )

        if stage == Stage.ACTION and self.recommendation_categories:
            parts.append(
                RECOMMEND_ADDON.format(
                    categories=", ".join(self.recommendation_categories)
                )
            )

        directive = "\n".join(p.rstrip("\n") for p in parts) + "\n"
        logger.debug(
            "Directive: turn=%d stage=%s commitment_pending=%s topics=%s",
            turn_index,
            stage.value,
            commitment_pending,
            sorted(t.value for t in signal.topics),
        )
        return DirectivePayload(
            directive=directive,
            stage=stage,
            commitment_pending=commitment_pending,
            turn_index=turn_index,
            topics=signal.topics,
        )

    # ─── Sections ────────────────────────────────────────────────

    def _stage_section(
        self,
        stage: Stage,
        persona: PersonaProfile,
        signal: SignalProfile,
        user_texts: list[str],
        history: list[Message],
        turn_index: int,
    ) -> str:
        context = analyze_context(history, turn_index)
        dream = self._dream_quote(signal, user_texts)
        lines: list[str] = []

        if stage == Stage.EMPATHY:
            lines.append(EMPATHY_DIRECTIVE.format(pronoun=persona.pronoun))
            if context.should_ask_about_dreams:
                lines.append("- Ask what they dreamed of becoming when they were little.")
            if dream:
                lines.append(f"Bring back the dream they mentioned: \"{dream}\"")
            if signal.concerns:
                lines.append(f"Show you understand this worry: {signal.concerns[0]}")
            traits = infer_traits(signal)
            if traits:
                lines.append(
                    "You have a hunch they are " + " and ".join(traits[:2])
                    + "; hint at it gently, as a guess."
                )
            lines.append(
                "Work these in naturally, in your own childlike words:\n"
                f"- {select_cold_reading_phrase(signal, self._rng)}\n"
                f"- {generate_insightful_question(traits, signal.concerns, self._rng)}"
            )

        elif stage == Stage.REALIZATION:
            turns_left = max(first_turn_of(Stage.ACTION) - turn_index, 1)
            lines.append(REALIZATION_DIRECTIVE.format(turns_left=turns_left))
            if dream:
                lines.append(f"Remind them of the dream they once had: \"{dream}\"")
            if signal.concerns:
                lines.append(
                    f"Ask how \"{signal.concerns[0]}\" fits with what they really want."
                )
            lines.append("Keep it short; aim for one real insight.")

        else:
            lines.append(ACTION_DIRECTIVE.format(pronoun=persona.pronoun))
            if dream:
                lines.append(f"Make the next step a first step toward their dream: \"{dream}\"")
            elif signal.interests:
                lines.append(
                    "Build the next step around something they enjoy: "
                    + ", ".join(t.value for t in signal.interests)
                )

        lines.append(f"Tone: {context.emotional_tone}")
        return "\n".join(lines)

    def _commitment_section(
        self, persona: PersonaProfile, signal: SignalProfile, user_texts: list[str]
    ) -> str:
        lines = [COMMITMENT_DIRECTIVE.format(pronoun=persona.pronoun)]
        dream = self._dream_quote(signal, user_texts)
        if dream:
            lines.append(
                "Suggested actions:\n"
                "- A small move toward the dream they mentioned: \"" + dream + "\"\n"
                "- Five minutes a day of something they used to love\n"
                "- Something their younger self would be happy to see"
            )
        elif signal.interests:
            lines.append(
                "Base the action on what they enjoy: "
                + ", ".join(t.value for t in signal.interests)
            )
        return "\n".join(lines)

    def _dream_quote(self, signal: SignalProfile, user_texts: list[str]) -> str | None:
        """Latest user message about dreams, when dreams are a live topic."""
        if Topic.DREAMS not in signal.topics:
            return None
        window = user_texts[-self.extractor.window_size:]
        for text in reversed(window):
            if mentions_topic(text, Topic.DREAMS):
                return text
        return None
