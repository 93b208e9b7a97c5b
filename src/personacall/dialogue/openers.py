"""
Opening lines — what the younger self says when the call connects.
"""

from __future__ import annotations

import random
from datetime import datetime

from personacall.dialogue.models import Mood

OPENERS: dict[str, tuple[str, ...]] = {
    "surprise": (
        "Whoa! Is that really grown-up me? You got so big! What's it like being a grown-up? Is it fun?",
        "No way, this is future me?! You're so tall now! Your face changed a little, but your eyes are the same. Are you tired?",
        "Wow, the time machine actually worked! It's grown-up me! Did we end up happy?",
    ),
    "curious": (
        "I finally get to meet you! How old are you now? What's your job? Do you have kids? I have so many questions!",
        "Meeting grown-up me is so exciting! Do you still like dinosaurs? Did you become an astronaut? Do you remember our dream?",
    ),
    "caring": (
        "Oh, it's grown-up me. You look kind of tired. Is being a grown-up hard? Are you getting enough rest?",
        "I'm so happy to see you! But your eyes look different than before. A lot happened, huh? Want to tell me about it?",
    ),
    "dreams": (
        "Grown-up me! I have to ask you something. Did our dream come true? Or did you find a different path?",
        "Are you happy now? Is it like the future we used to imagine, or totally different?",
    ),
    "insightful": (
        "So you're grown-up me. I can tell from your eyes. You've been holding a lot in, haven't you?",
        "That's funny, you're me but you feel like someone else. When was the last time you really laughed?",
    ),
}

MOOD_OPENERS: dict[Mood, str] = {
    Mood.POSITIVE: "Wow, grown-up me, you look happy! Did something good happen? Or are you just happy to see me? I'm happy too!",
    Mood.NEGATIVE: "Oh, grown-up me. You don't look so good. Are you okay? Did something bad happen? I'll listen if you want.",
    Mood.MIXED: "You have a funny face on. Happy and sad at the same time. Grown-ups are complicated, huh? How do you feel?",
}

# Video-call openers: a reason for calling, then one of these follow-ups
VIDEO_CALL_REASONS = (
    "Hehe, I found out we can do video calls, so I called!",
    "I wanted to see your face while we talk, so I made it a video call!",
    "I wanted to really see you, so I called!",
    "Is this a TV phone? I wanted to try it!",
    "I didn't just want your voice, I wanted to see your face too!",
    "Wow! The video actually connected! Amazing!",
    "Hey, hey, am I on the screen? Can you see me?",
    "My first video call ever! My heart is pounding!",
    "We can talk and see each other! The future is amazing!",
    "I pushed the phone button and your face showed up! Surprise!",
)

CONVERSATION_TOPICS = (
    "toys", "cartoons", "games", "snacks", "favorite places", "playing",
    "picture books", "movies", "TV shows", "friends", "school", "dreams",
)

VIDEO_CALL_FOLLOW_UPS = (
    "Can you see me okay? Wow, I can see grown-up me's face so clearly!",
    "Cool! We really can talk face to face! It feels so weird!",
    "It's through a screen, but I'm so happy to see you! How was your day?",
    "So this is a video call! I can see grown-up me just fine!",
    "Talking face to face is fun! Hey, tell me more about {topic}!",
)

# (first hour, last hour exclusive, line); hours outside every range are late night
TIME_OPENERS: tuple[tuple[int, int, str], ...] = (
    (6, 10, "Good morning, grown-up me! You get up early now. I always hated waking up... did you change, or is it for work?"),
    (10, 15, "Hi, grown-up me! It's lunchtime. Is it a day off, or are you on a break? Did you eat lunch?"),
    (15, 19, "Yay, I got you! It's evening. When we were little we played outside at this time. What are you doing now? Done with work?"),
    (19, 23, "Good evening, grown-up me! It's late, are you okay? I'd be in bed by now... grown-ups get to stay up. But aren't you tired?"),
)
LATE_NIGHT_OPENER = (
    "Huh! You're still up this late? Grown-ups are amazing... but you need to sleep, okay? Is something bothering you?"
)


def video_call_opener(rng: random.Random | None = None) -> str:
    """A reason for calling plus a follow-up, sometimes about a random topic."""
    rng = rng or random.Random()
    reason = rng.choice(VIDEO_CALL_REASONS)
    follow_up = rng.choice(VIDEO_CALL_FOLLOW_UPS).format(
        topic=rng.choice(CONVERSATION_TOPICS)
    )
    return f"{reason} {follow_up}"


def time_based_opener(hour: int) -> str:
    for start, end, line in TIME_OPENERS:
        if start <= hour < end:
            return line
    return LATE_NIGHT_OPENER


def pick_opener(
    mood: Mood | None = None,
    category: str | None = None,
    rng: random.Random | None = None,
    hour: int | None = None,
) -> str:
    """Pick the persona's first line.

    A known mood wins. Otherwise ``category`` selects a pool: one of
    OPENERS, "video_call", or "time_of_day" (by ``hour``, default now).
    Anything else picks from all of OPENERS.
    """
    rng = rng or random.Random()
    if mood is not None and mood in MOOD_OPENERS:
        return MOOD_OPENERS[mood]
    if category == "video_call":
        return video_call_opener(rng)
    if category == "time_of_day":
        return time_based_opener(datetime.now().hour if hour is None else hour)
    if category in OPENERS:
        return rng.choice(OPENERS[category])
    pool = [line for lines in OPENERS.values() for line in lines]
    return rng.choice(pool)
