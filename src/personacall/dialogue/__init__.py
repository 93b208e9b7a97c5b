"""
PersonaCall Dialogue — the turn-indexed conversation engine.

stages     turn index -> Stage
signals    mood, topics and concerns from recent user text
commitment has the user promised a concrete action yet
directives per-turn instruction for the text-generation provider
session    history, turn counter and the reply flow for one call
"""

from personacall.dialogue.commitment import has_commitment, is_commitment
from personacall.dialogue.directives import PromptAssembler, analyze_context
from personacall.dialogue.models import (
    DirectivePayload,
    Message,
    Mood,
    PersonaProfile,
    Recommendation,
    Sender,
    SignalProfile,
    Stage,
    Topic,
)
from personacall.dialogue.session import DialogueSession
from personacall.dialogue.signals import SignalExtractor, infer_traits
from personacall.dialogue.stages import stage_for_turn

__all__ = [
    "DialogueSession",
    "DirectivePayload",
    "Message",
    "Mood",
    "PersonaProfile",
    "PromptAssembler",
    "Recommendation",
    "Sender",
    "SignalExtractor",
    "SignalProfile",
    "Stage",
    "Topic",
    "analyze_context",
    "has_commitment",
    "infer_traits",
    "is_commitment",
    "stage_for_turn",
]
