"""
Course Catalog — a small built-in list of learning resources.

Entries carry broad tags and finer keywords. Free-text matching scores
tag hits 2 and keyword hits 1; a category lookup prefers entries tagged
with that category and otherwise falls back to the default categories.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    url: str
    tags: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    lang: str = "en"


DEFAULT_COURSES: tuple[Course, ...] = (
    Course(
        id="career_design_intro",
        title="Designing a Career That Fits You",
        url="https://www.udemy.com/course/youronlycareerdesign/",
        tags=("career", "self-discovery"),
        keywords=("job change", "strengths", "way of working", "reskilling"),
    ),
    Course(
        id="habit_minimum_5min",
        title="Five-Minute Minimum Habits",
        url="https://www.udemy.com/topic/habits/",
        tags=("habits", "growth"),
        keywords=("habit", "routine", "consistency", "goal", "every day"),
    ),
    Course(
        id="designthinking_practice",
        title="Practical Design Thinking You Can Use Today",
        url="https://www.udemy.com/course/designthinking_basics/",
        tags=("design", "problem solving"),
        keywords=("idea", "empathy", "prototype", "user"),
    ),
    Course(
        id="startup_strategy_vc",
        title="Startup Strategy From a Working VC",
        url="https://www.udemy.com/course/start-up_strategy/",
        tags=("startup", "strategy"),
        keywords=("founder", "fundraising", "business model", "product market fit"),
    ),
    Course(
        id="ikigai_find_purpose_en",
        title="IKIGAI - Find Your Life Purpose",
        url="https://www.udemy.com/course/ikigai-find-your-life-purpose/",
        tags=("self-discovery", "ikigai"),
        keywords=("purpose", "meaning", "dream", "fulfillment"),
    ),
    Course(
        id="python_basics",
        title="Python Programming for Beginners",
        url="https://www.udemy.com/course/python-basics/",
        tags=("programming", "python", "learning"),
        keywords=("code", "coding", "app", "data analysis", "machine learning"),
    ),
    Course(
        id="javascript_web_development",
        title="Building Web Apps With JavaScript",
        url="https://www.udemy.com/course/javascript-web-development/",
        tags=("programming", "javascript", "web"),
        keywords=("website", "frontend", "backend", "nodejs", "js"),
    ),
)

# Used when a category has no tagged entry at all
DEFAULT_CATEGORIES: tuple[str, ...] = ("habits", "self-discovery", "career")


@dataclass
class CourseCatalog:
    courses: tuple[Course, ...] = DEFAULT_COURSES
    default_categories: tuple[str, ...] = field(default=DEFAULT_CATEGORIES)

    @property
    def categories(self) -> tuple[str, ...]:
        """Every tag in the catalog, in first-seen order."""
        seen: dict[str, None] = {}
        for course in self.courses:
            for tag in course.tags:
                seen.setdefault(tag, None)
        return tuple(seen)

    def score(self, course: Course, text: str) -> int:
        query = text.lower()
        score = sum(2 for tag in course.tags if tag.lower() in query)
        score += sum(1 for kw in course.keywords if kw.lower() in query)
        return score

    def recommend(self, text: str, top_n: int = 3) -> list[Course]:
        """Courses with a positive score against free text, best first."""
        scored = [(self.score(c, text), i, c) for i, c in enumerate(self.courses)]
        ranked = sorted(
            (item for item in scored if item[0] > 0),
            key=lambda item: (-item[0], item[1]),
        )
        return [course for _, _, course in ranked[:top_n]]

    def select(self, category: str) -> Course | None:
        """Best single course for a category, never None for a non-empty catalog."""
        category = category.strip().lower()
        if category:
            for course in self.courses:
                if category in course.tags:
                    return course
            matches = self.recommend(category, top_n=1)
            if matches:
                return matches[0]

        for fallback in self.default_categories:
            for course in self.courses:
                if fallback in course.tags:
                    logger.debug(
                        "No course for category %r, falling back to %s",
                        category,
                        fallback,
                    )
                    return course
        return self.courses[0] if self.courses else None
