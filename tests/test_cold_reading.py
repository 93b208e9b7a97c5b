"""Tests for cold-reading phrases and insightful questions."""

import random

import pytest

from personacall.dialogue.cold_reading import (
    COLD_READING_PHRASES,
    DEFAULT_QUESTIONS,
    GENERAL_STATEMENTS,
    TRAIT_QUESTIONS,
    generate_insightful_question,
    select_cold_reading_phrase,
)
from personacall.dialogue.models import Mood, SignalProfile, Topic
from personacall.dialogue.signals import SignalExtractor, infer_traits


@pytest.mark.parametrize("seed", range(5))
def test_phrase_follows_topic(seed):
    profile = SignalProfile(topics=frozenset({Topic.RELATIONSHIPS}))
    phrase = select_cold_reading_phrase(profile, random.Random(seed))
    assert phrase in COLD_READING_PHRASES["relationships"]


@pytest.mark.parametrize("seed", range(5))
def test_dreams_use_life_phrases(seed):
    profile = SignalProfile(topics=frozenset({Topic.DREAMS}))
    phrase = select_cold_reading_phrase(profile, random.Random(seed))
    assert phrase in COLD_READING_PHRASES["life"]


def test_troubled_mood_adds_emotion_phrases():
    profile = SignalProfile(mood=Mood.NEGATIVE, topics=frozenset({Topic.WORK}))
    allowed = COLD_READING_PHRASES["work"] + COLD_READING_PHRASES["emotions"]
    seen = {select_cold_reading_phrase(profile, random.Random(s)) for s in range(40)}

    assert seen <= set(allowed)
    assert seen & set(COLD_READING_PHRASES["emotions"])


@pytest.mark.parametrize("mood", [Mood.NEUTRAL, Mood.POSITIVE])
def test_nothing_found_falls_back_to_general_statement(mood):
    profile = SignalProfile(mood=mood, topics=frozenset({Topic.MONEY}))
    assert select_cold_reading_phrase(profile) in GENERAL_STATEMENTS


def test_empty_profile_gets_general_statement():
    assert select_cold_reading_phrase(SignalProfile.empty()) in GENERAL_STATEMENTS


def test_question_without_traits_or_concerns_is_a_default():
    assert generate_insightful_question([], []) in DEFAULT_QUESTIONS


def test_trait_question_is_in_the_pool():
    traits = ["a bit of a perfectionist"]
    seen = {generate_insightful_question(traits, [], random.Random(s)) for s in range(40)}

    assert TRAIT_QUESTIONS["a bit of a perfectionist"] in seen
    assert seen <= {TRAIT_QUESTIONS["a bit of a perfectionist"], *DEFAULT_QUESTIONS}


def test_concern_question_names_the_first_concern():
    concerns = ["my job", "money"]
    seen = {generate_insightful_question([], concerns, random.Random(s)) for s in range(40)}

    assert "About my job, what do you really want to do?" in seen
    assert not any("money" in q for q in seen)


def test_trait_keys_match_inferred_traits():
    profile = SignalExtractor(window_size=1).extract(
        ["My boss is worrying me and work is hard, I dream of leaving"]
    )
    traits = infer_traits(profile)

    assert "tends to put others first" in traits
    assert "still holds on to ideals" in traits
    assert set(TRAIT_QUESTIONS) & set(traits)
