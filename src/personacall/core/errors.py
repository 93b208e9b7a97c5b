"""
Error taxonomy for the call engine.

None of these are fatal to a call. Provider failures degrade to fallback
content, stale results and repeated utterances are dropped quietly.
"""

from __future__ import annotations


class PersonaCallError(Exception):
    """Base class for engine errors."""


class TransientProviderError(PersonaCallError):
    """A text or speech provider failed or timed out."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} provider failed: {reason}")
        self.provider = provider
        self.reason = reason


class StaleResultError(PersonaCallError):
    """A provider result arrived after the session moved past its turn."""

    def __init__(self, issued_turn: int, current_turn: int):
        super().__init__(
            f"result for turn {issued_turn} is stale (session at {current_turn})"
        )
        self.issued_turn = issued_turn
        self.current_turn = current_turn


class DuplicateUtteranceError(PersonaCallError):
    """The same text was asked to be spoken twice in a row."""

    def __init__(self, text: str):
        super().__init__(f"duplicate utterance: {text[:40]!r}")
        self.text = text
