"""
Dialogue Models — the data that flows through one call.

Message is immutable and identified by its id. SignalProfile and
DirectivePayload are derived values, recomputed from history on demand.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Sender(str, Enum):
    USER = "user"
    AGENT = "agent"


class Stage(str, Enum):
    """Conversation phase. Ordered: EMPATHY < REALIZATION < ACTION."""

    EMPATHY = "empathy"
    REALIZATION = "realization"
    ACTION = "action"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank >= other.rank


_STAGE_ORDER = (Stage.EMPATHY, Stage.REALIZATION, Stage.ACTION)


class Mood(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


class Topic(str, Enum):
    WORK = "work"
    RELATIONSHIPS = "relationships"
    HEALTH = "health"
    DREAMS = "dreams"
    PAST = "past"
    MONEY = "money"


@dataclass(frozen=True)
class Recommendation:
    """A learning resource attached to an Agent message."""

    category: str
    id: str
    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {
            "category": self.category,
            "id": self.id,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True)
class Message:
    """One turn of the conversation."""

    sender: Sender
    text: str
    turn_index: int
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    recommendation: Recommendation | None = None

    @property
    def role(self) -> str:
        """OpenAI chat role for this message."""
        return "user" if self.sender == Sender.USER else "assistant"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender.value,
            "text": self.text,
            "turn_index": self.turn_index,
            "recommendation": (
                self.recommendation.to_dict() if self.recommendation else None
            ),
        }


@dataclass(frozen=True)
class SignalProfile:
    """Mood and topical summary of recent user text."""

    mood: Mood = Mood.NEUTRAL
    topics: frozenset[Topic] = frozenset()
    concerns: tuple[str, ...] = ()
    interests: tuple[Topic, ...] = ()
    confidence: float = 0.0
    dominant_emotion: str | None = None

    @classmethod
    def empty(cls) -> SignalProfile:
        return cls()


@dataclass(frozen=True)
class PersonaProfile:
    """How the persona speaks and shows up on screen."""

    category: str = "male"
    pronoun: str = "I"
    voice_profile: str = "onyx"
    # False for the still-image persona variant: audio only, no video loop
    supports_video_loop: bool = True


@dataclass(frozen=True)
class DirectivePayload:
    """Instruction handed to the text-generation provider for one turn."""

    directive: str
    stage: Stage
    commitment_pending: bool
    turn_index: int
    topics: frozenset[Topic] = frozenset()

    @property
    def template(self) -> str:
        return "commitment" if self.commitment_pending else self.stage.value
