"""
PersonaCall Recommendations — learning resources attached to replies.
"""

from personacall.recommend.catalog import Course, CourseCatalog
from personacall.recommend.recommender import Recommender, RecommendationResult
from personacall.recommend.tags import extract_tag

__all__ = [
    "Course",
    "CourseCatalog",
    "Recommender",
    "RecommendationResult",
    "extract_tag",
]
