"""
Cold reading — "I can tell..." lines the persona weaves into early turns.

Phrases are picked from the topics and mood a SignalProfile found; with
nothing found, a general statement that fits almost anyone is used.
"""

from __future__ import annotations

import random
from typing import Sequence

from personacall.dialogue.models import Mood, SignalProfile, Topic

COLD_READING_PHRASES: dict[str, tuple[str, ...]] = {
    "work": (
        "I think you're trying something new at work lately!",
        "Grown-up me, you really want someone to notice how hard you try, right?",
        "Thinking about work gives you kind of a twisty feeling, doesn't it?",
        "You work so hard, but it still feels like something's missing?",
    ),
    "relationships": (
        "I think you've been thinking about someone important a lot...",
        "There's something you still haven't told someone, right?",
        "Being close to people is tricky, huh...",
        "You're so nice that you put yourself last, aren't you?",
    ),
    "life": (
        "It feels like you're at a really big moment in your life!",
        "Our childhood dream is still somewhere in your heart, right?",
        "Sometimes you wonder if it's okay to keep going like this?",
        "You really want to start something new lately, don't you?",
    ),
    "emotions": (
        "Are you pushing yourself too hard without even noticing?",
        "You look okay on the outside, but inside it's a bit different?",
        "I think you're carrying a feeling you can't tell anyone...",
        "It's hard to show the real you sometimes, huh.",
    ),
}

GENERAL_STATEMENTS = (
    "Sometimes you feel like you say one thing and feel another, right?",
    "You act cheerful, but sometimes it's not how you really feel.",
    "Being extra nice to everyone makes you tired sometimes, doesn't it?",
)

DEFAULT_QUESTIONS = (
    "Did you tell anyone how you really feel?",
    "What do you think little me would say about it?",
    "Do you like yourself right now?",
)

# infer_traits() wording -> the question it unlocks
TRAIT_QUESTIONS = {
    "a bit of a perfectionist": (
        "Do you think it has to be a hundred points every time? Eighty is great too!"
    ),
    "tends to put others first": (
        "You think about everyone so much, did you forget about you?"
    ),
    "still holds on to ideals": (
        "Is the dream in your heart still sparkly, or did it fade a little?"
    ),
}


def select_cold_reading_phrase(
    profile: SignalProfile, rng: random.Random | None = None
) -> str:
    """One phrase matching the profile's topics and mood."""
    rng = rng or random.Random()
    pool: list[str] = []
    if Topic.WORK in profile.topics:
        pool.extend(COLD_READING_PHRASES["work"])
    if Topic.RELATIONSHIPS in profile.topics:
        pool.extend(COLD_READING_PHRASES["relationships"])
    if Topic.DREAMS in profile.topics:
        pool.extend(COLD_READING_PHRASES["life"])
    if profile.mood in (Mood.NEGATIVE, Mood.MIXED):
        pool.extend(COLD_READING_PHRASES["emotions"])
    if not pool:
        pool.extend(GENERAL_STATEMENTS)
    return rng.choice(pool)


def generate_insightful_question(
    traits: Sequence[str],
    concerns: Sequence[str],
    rng: random.Random | None = None,
) -> str:
    """A question aimed at the inferred traits or the first concern."""
    rng = rng or random.Random()
    pool = [TRAIT_QUESTIONS[t] for t in traits if t in TRAIT_QUESTIONS]
    if concerns:
        pool.append(f"About {concerns[0]}, what do you really want to do?")
        pool.append("Is that really something you have to worry about?")
    pool.extend(DEFAULT_QUESTIONS)
    return rng.choice(pool)
