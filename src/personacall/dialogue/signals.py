"""
Signal Extraction — keyword analysis of what the user has been saying.

Looks at a window of the most recent user utterances and produces a
SignalProfile: overall mood, topics touched, concerns voiced, and the
topics the user sounds positive about. Purely lexical, no model calls.

Keywords match whole words only, so every accepted inflection is listed
("hope" must not fire on "hopeless"). Negative words are weighted higher
than positive ones so distress is picked up early (1.8 vs 1.5).
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from personacall.dialogue.models import Message, Mood, Sender, SignalProfile, Topic

logger = logging.getLogger(__name__)

POSITIVE_WEIGHT = 1.5
NEGATIVE_WEIGHT = 1.8

# A mood wins outright only when it beats the other side by this factor
MOOD_DOMINANCE = 1.5

# Keyword hits at which the hit component of confidence saturates
CONFIDENCE_SATURATION = 6

POSITIVE_WORDS = (
    "happy", "happier", "happiest", "glad", "fun", "great", "good", "best",
    "wonderful", "love", "loved", "loves", "loving", "enjoy", "enjoys",
    "enjoyed", "enjoying", "excited", "exciting", "proud", "success",
    "successful", "achieve", "achieved", "amazing",
)
NEGATIVE_WORDS = (
    "sad", "sadder", "pain", "painful", "hard", "tough", "anxious", "anxiety",
    "worried", "worry", "worries", "worrying", "scared", "afraid", "tired",
    "exhausted", "exhausting", "stressed", "stressful", "fail", "failed",
    "failing", "failure", "regret", "regrets", "regretted", "lonely",
    "hopeless", "helpless", "worthless", "depressed", "depressing",
    "miserable", "grief", "grieving", "funeral",
)
NEUTRAL_WORDS = (
    "ok", "okay", "so-so", "normal", "usual", "nothing special", "every day",
    "as always",
)

TOPIC_KEYWORDS: dict[Topic, tuple[str, ...]] = {
    Topic.WORK: (
        "work", "works", "worked", "working", "job", "jobs", "office", "boss",
        "colleague", "colleagues", "coworker", "coworkers", "project",
        "projects", "meeting", "meetings", "overtime", "career",
    ),
    Topic.RELATIONSHIPS: (
        "family", "friend", "friends", "partner", "boyfriend", "girlfriend",
        "husband", "wife", "kids", "children", "parents", "relationship",
        "relationships",
    ),
    Topic.HEALTH: (
        "health", "healthy", "sick", "illness", "exercise", "diet", "sleep",
        "sleeping", "stress", "stressed", "fatigue",
    ),
    Topic.DREAMS: (
        "dream", "dreams", "dreamed", "dreamt", "dreaming", "goal", "goals",
        "future", "hope", "hopes", "hoped", "hoping", "wish", "wishes",
        "wished", "want to be", "want to become", "wanted to be",
        "wanted to become",
    ),
    Topic.PAST: (
        "childhood", "when i was young", "when i was little", "as a kid",
        "memory", "memories", "nostalgic", "remember", "remembered",
        "used to",
    ),
    Topic.MONEY: (
        "money", "salary", "savings", "rent", "bills", "debt", "debts",
        "shopping", "cost of living",
    ),
}

# "X is worrying me" and friends; group 1 is the subject clause
CONCERN_PATTERNS = (
    re.compile(r"^(.+?)\s+(?:is|are|has been|have been)\s+(?:worrying|troubling|bothering)\b", re.I),
    re.compile(r"\b(?:i'?m|i am)\s+(?:really\s+)?(?:worried|anxious)\s+about\s+(.+)$", re.I),
    re.compile(r"\b(?:i'?m|i am)\s+(?:struggling|stuck)\s+with\s+(.+)$", re.I),
    re.compile(r"^(.+?)\s+(?:isn'?t|is not|aren'?t|are not)\s+going\s+well\b", re.I),
    re.compile(r"\bi\s+(?:can'?t|cannot)\s+seem\s+to\s+(.+)$", re.I),
)

_CLAUSE_SPLIT = re.compile(r"[.!?;]+")
_LEADING_FILLER = re.compile(r"^(?:(?:and|but|so|well|honestly|lately|really|also)\b[\s,]*)+", re.I)


def _pattern(word: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(word) + r"\b", re.I)


_POSITIVE = tuple(_pattern(w) for w in POSITIVE_WORDS)
_NEGATIVE = tuple(_pattern(w) for w in NEGATIVE_WORDS)
_NEUTRAL = tuple(_pattern(w) for w in NEUTRAL_WORDS)
_TOPICS = {
    topic: tuple(_pattern(w) for w in words)
    for topic, words in TOPIC_KEYWORDS.items()
}


def _count(patterns: Iterable[re.Pattern[str]], text: str) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def _mentions(patterns: Iterable[re.Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def classify_mood(positive: float, negative: float) -> Mood:
    """Decide mood from weighted positive/negative scores."""
    if positive > negative * MOOD_DOMINANCE:
        return Mood.POSITIVE
    if negative > positive * MOOD_DOMINANCE:
        return Mood.NEGATIVE
    if positive > 0 and negative > 0:
        return Mood.MIXED
    return Mood.NEUTRAL


_DOMINANT_EMOTION = {
    Mood.POSITIVE: "joy",
    Mood.NEGATIVE: "anxiety",
    Mood.MIXED: "conflicted",
}


def extract_concerns(text: str) -> list[str]:
    """Pull out the subject of "X is worrying me" style statements."""
    concerns: list[str] = []
    for clause in _CLAUSE_SPLIT.split(text):
        clause = clause.strip()
        if not clause:
            continue
        for pattern in CONCERN_PATTERNS:
            match = pattern.search(clause)
            if not match:
                continue
            subject = _LEADING_FILLER.sub("", match.group(1)).strip(" ,")
            if subject and subject.lower() not in (c.lower() for c in concerns):
                concerns.append(subject)
    return concerns


class SignalExtractor:
    """Keyword-based mood/topic analysis over a window of user messages."""

    def __init__(self, window_size: int = 5):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size

    def extract(
        self, recent_user_messages: Sequence[str], window_size: int | None = None
    ) -> SignalProfile:
        """Analyze the last ``window_size`` user messages.

        Empty input yields a neutral profile with zero confidence.
        """
        size = window_size or self.window_size
        window = [m for m in recent_user_messages if m and m.strip()][-size:]
        if not window:
            return SignalProfile.empty()

        combined = " ".join(window)

        positive_hits = _count(_POSITIVE, combined)
        negative_hits = _count(_NEGATIVE, combined)
        neutral_hits = _count(_NEUTRAL, combined)
        positive = positive_hits * POSITIVE_WEIGHT
        negative = negative_hits * NEGATIVE_WEIGHT
        mood = classify_mood(positive, negative)

        topics = frozenset(
            topic for topic, patterns in _TOPICS.items() if _mentions(patterns, combined)
        )

        concerns: list[str] = []
        for message in window:
            for concern in extract_concerns(message):
                if concern.lower() not in (c.lower() for c in concerns):
                    concerns.append(concern)

        # A topic is an interest when some message mentions it upbeat
        interests = tuple(
            topic
            for topic in Topic
            if topic in topics
            and any(
                _mentions(_TOPICS[topic], message) and _mentions(_POSITIVE, message)
                for message in window
            )
        )

        fill = min(len(window) / size, 1.0)
        total_hits = positive_hits + negative_hits + neutral_hits
        hits = min(total_hits / CONFIDENCE_SATURATION, 1.0)
        confidence = max(0.0, min(fill * hits, 1.0))

        profile = SignalProfile(
            mood=mood,
            topics=topics,
            concerns=tuple(concerns),
            interests=interests,
            confidence=confidence,
            dominant_emotion=_DOMINANT_EMOTION.get(mood),
        )
        logger.debug(
            "Signal: mood=%s topics=%s concerns=%d confidence=%.2f",
            mood.value,
            sorted(t.value for t in topics),
            len(concerns),
            confidence,
        )
        return profile

    def extract_from_history(self, history: Sequence[Message]) -> SignalProfile:
        """Same as extract(), taking the user-authored part of a history."""
        return self.extract([m.text for m in history if m.sender == Sender.USER])


def mentions_topic(text: str, topic: Topic) -> bool:
    return _mentions(_TOPICS[topic], text)


def is_distressed(text: str) -> bool:
    """Any negative keyword in the text."""
    return _mentions(_NEGATIVE, text)


def infer_traits(profile: SignalProfile) -> list[str]:
    """Cold-reading style guesses about the user, most specific first."""
    traits: list[str] = []

    if profile.mood == Mood.MIXED:
        traits += ["sensitive", "thinks things through deeply"]
    if profile.mood == Mood.NEGATIVE and profile.confidence > 0.5:
        traits += ["carries a lot of responsibility", "a bit of a perfectionist"]

    if Topic.WORK in profile.topics:
        traits += ["hard-working", "wants to grow"]
    if Topic.RELATIONSHIPS in profile.topics:
        traits += ["cares deeply about people", "kind-hearted"]
    if Topic.DREAMS in profile.topics:
        traits += ["still holds on to ideals", "forward-looking"]

    if profile.concerns:
        traits += ["careful and considerate", "tends to put others first"]

    return traits
