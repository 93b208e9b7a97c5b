"""
Commitment detection — has the user promised to do something yet?

Keyword based. User messages are checked for promise language; Agent
messages only count when the persona seals a promise the user already
made ("pinky swear", "it's a deal"), so the persona asking for a promise
never counts as one.
"""

from __future__ import annotations

import re
from typing import Sequence

from personacall.dialogue.models import Message, Sender

USER_COMMITMENT_MARKERS = (
    "i promise",
    "promise",
    "i pledge",
    "i will start",
    "i'll start",
    "i will do it",
    "i'll do it",
    "i'm going to start",
    "starting tomorrow",
    "starting today",
)

AGENT_SEAL_MARKERS = (
    "pinky swear",
    "pinky promise",
    "it's a deal",
    "it's a promise",
    "we promised",
)


def _compile(markers: Sequence[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(m).replace("'", "['’]") for m in markers)
    return re.compile(r"\b(?:" + alternatives + r")\b", re.I)


_USER_PATTERN = _compile(USER_COMMITMENT_MARKERS)
_AGENT_PATTERN = _compile(AGENT_SEAL_MARKERS)


def is_commitment(message: Message) -> bool:
    """Whether this single message carries a commitment marker."""
    if message.sender == Sender.USER:
        return bool(_USER_PATTERN.search(message.text))
    return bool(_AGENT_PATTERN.search(message.text))


def has_commitment(history: Sequence[Message]) -> bool:
    """True once any message in the history carries a commitment marker."""
    return any(is_commitment(message) for message in history)
