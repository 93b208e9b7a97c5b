"""Tests for recommendation tags and the course catalog."""

import pytest

from personacall.recommend import CourseCatalog, Recommender, extract_tag


@pytest.fixture
def catalog():
    return CourseCatalog()


# ─── Tags ────────────────────────────────────────────────────


def test_no_tag_returns_none():
    assert extract_tag("Pinky swear!") is None


def test_tag_is_stripped():
    assert extract_tag("Let's build a habit together! [RECOMMEND: habits]") == (
        "Let's build a habit together!",
        "habits",
    )


def test_tag_in_the_middle_keeps_spacing():
    assert extract_tag("Do it! [RECOMMEND: habits] Okay?") == ("Do it! Okay?", "habits")


def test_tag_before_punctuation():
    assert extract_tag("Try this [RECOMMEND: design].") == ("Try this.", "design")


def test_tag_is_case_insensitive():
    assert extract_tag("ok [recommend:  Self-Discovery ]")[1] == "self-discovery"


# ─── Catalog ─────────────────────────────────────────────────


def test_select_by_tag(catalog):
    assert catalog.select("habits").id == "habit_minimum_5min"
    assert catalog.select("programming").id == "python_basics"


def test_select_unknown_category_falls_back(catalog):
    assert catalog.select("underwater basket weaving").id == "habit_minimum_5min"
    assert catalog.select("").id == "habit_minimum_5min"


def test_recommend_scores_free_text(catalog):
    results = catalog.recommend("I want to learn python coding")
    assert results[0].id == "python_basics"


def test_recommend_without_matches_is_empty(catalog):
    assert catalog.recommend("nothing relevant here") == []


def test_categories_are_unique(catalog):
    categories = catalog.categories
    assert "habits" in categories
    assert len(categories) == len(set(categories))


# ─── Recommender ─────────────────────────────────────────────


def test_inspect_untagged_reply():
    assert Recommender().inspect("Whoa!") is None


def test_inspect_attaches_course():
    result = Recommender().inspect("Start small! [RECOMMEND: career]")
    assert result.stripped_text == "Start small!"
    assert result.recommendation.to_dict() == {
        "category": "career",
        "id": "career_design_intro",
        "title": "Designing a Career That Fits You",
        "url": "https://www.udemy.com/course/youronlycareerdesign/",
    }


def test_inspect_unknown_category_keeps_requested_name():
    result = Recommender().inspect("Go! [RECOMMEND: cooking]")
    assert result.recommendation.category == "cooking"
    assert result.recommendation.id == "habit_minimum_5min"


def test_empty_catalog_strips_without_payload():
    result = Recommender(CourseCatalog(courses=())).inspect("Go! [RECOMMEND: habits]")
    assert result.stripped_text == "Go!"
    assert result.recommendation is None
