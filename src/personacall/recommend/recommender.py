"""
Recommender — turns a tagged reply into clean text plus a course payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from personacall.core.metrics import metrics
from personacall.dialogue.models import Recommendation
from personacall.recommend.catalog import CourseCatalog
from personacall.recommend.tags import extract_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationResult:
    stripped_text: str
    recommendation: Recommendation | None


class Recommender:
    def __init__(self, catalog: CourseCatalog | None = None):
        self.catalog = catalog or CourseCatalog()

    @property
    def categories(self) -> tuple[str, ...]:
        return self.catalog.categories

    def inspect(self, raw_text: str) -> RecommendationResult | None:
        """None when the reply carries no tag; otherwise the tag is stripped."""
        found = extract_tag(raw_text)
        if found is None:
            return None

        stripped, category = found
        course = self.catalog.select(category)
        if course is None:
            return RecommendationResult(stripped_text=stripped, recommendation=None)

        metrics.inc("recommend.attached", labels={"category": category or "none"})
        logger.info("Recommendation attached: %s -> %s", category, course.id)
        return RecommendationResult(
            stripped_text=stripped,
            recommendation=Recommendation(
                category=category or (course.tags[0] if course.tags else ""),
                id=course.id,
                title=course.title,
                url=course.url,
            ),
        )
