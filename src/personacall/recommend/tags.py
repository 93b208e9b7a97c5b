"""
Recommendation tags embedded in reply text, e.g. "[RECOMMEND: habits]".
"""

from __future__ import annotations

import re

_TAG = re.compile(r"\[\s*RECOMMEND\s*:\s*([^\]]*?)\s*\]", re.I)
_SPACES = re.compile(r"[ \t]{2,}")


def extract_tag(text: str) -> tuple[str, str] | None:
    """Find the first recommendation tag and strip every tag from the text.

    Returns (stripped_text, category), or None when the text has no tag.
    The category is lowercased; an empty one ("[RECOMMEND: ]") still
    counts as a tag so it gets stripped.
    """
    match = _TAG.search(text)
    if not match:
        return None
    category = match.group(1).strip().lower()
    stripped = _TAG.sub(" ", text)
    stripped = _SPACES.sub(" ", stripped)
    stripped = re.sub(r"\s+([.,!?])", r"\1", stripped)
    return stripped.strip(), category
