from .cv_text import cv_sections, cv_to_text, normalize_skills, skills_are_categorized
from .keyword_extractor import KeywordExtractor, normalize_target_keywords
from .keyword_recommendations import (
    ContextualSuggestions,
    KeywordRecommendationEngine,
    KeywordStrategyAssessment,
)

__all__ = [
    "ContextualSuggestions",
    "KeywordExtractor",
    "KeywordRecommendationEngine",
    "KeywordStrategyAssessment",
    "cv_sections",
    "cv_to_text",
    "normalize_target_keywords",
    "normalize_skills",
    "skills_are_categorized",
]
