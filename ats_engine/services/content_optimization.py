from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.keyword_extractor import normalize_target_keywords
from ats_engine.schemas.ats import OptimizedContent, PrioritizedRecommendation
from ats_engine.schemas.cv import ParsedCV

logger = logging.getLogger(__name__)

_MISSING_KEYWORDS_RE = re.compile(r"Missing[^:]*:(.*?)(?:\.|$)")
_KEYWORD_SPLIT_RE = re.compile(r"[,;]")


def recommended_keywords(recommendations: Sequence[PrioritizedRecommendation]) -> list[str]:
    """Keywords named by keyword recommendations, from their keyword list or a 'Missing ...: a, b' description."""
    keywords: list[str] = []
    for rec in recommendations:
        if rec.category != "keywords":
            continue
        if rec.keywords:
            keywords.extend(rec.keywords)
            continue
        match = _MISSING_KEYWORDS_RE.search(rec.description or "")
        if match:
            keywords.extend(part.strip() for part in _KEYWORD_SPLIT_RE.split(match.group(1)) if len(part.strip()) > 2)
    return normalize_target_keywords(keywords)


def work_in_keywords(text: str, keywords: Sequence[str], max_chars: int = 1000) -> tuple[str, list[str]]:
    """Append absent keywords to the first sentence as ', including a, b'.

    Text without a sentence break is returned unchanged, and keywords stop
    being added once the result would reach max_chars.
    """
    head, sep, tail = text.partition(".")
    if not sep:
        return text, []

    lowered = text.lower()
    added: list[str] = []
    length = len(text) + len(", including ")
    for keyword in keywords:
        if keyword.lower() in lowered or keyword in added:
            continue
        extra = len(keyword) + (2 if added else 0)
        if length + extra >= max_chars:
            break
        added.append(keyword)
        length += extra

    if not added:
        return text, []
    return f"{head}, including {', '.join(added)}.{tail}", added


class ContentOptimizationService:
    def generate_optimized_content(
        self,
        cv: ParsedCV,
        recommendations: Sequence[PrioritizedRecommendation],
    ) -> OptimizedContent:
        """Copy of the CV with recommended keywords worked into the summary and role descriptions.

        The input CV is not modified.
        """
        keywords = recommended_keywords(recommendations)
        max_chars = int(get_scoring_value("content_optimization.max_text_chars", 1000))
        applied: list[str] = []
        changed: list[str] = []

        personal_info = cv.personal_info
        if keywords and personal_info.summary:
            summary, added = work_in_keywords(personal_info.summary, keywords, max_chars)
            if added:
                personal_info = personal_info.model_copy(update={"summary": summary})
                applied.extend(added)
                changed.append("summary")

        experience = []
        for index, exp in enumerate(cv.experience):
            if keywords and exp.description:
                description, added = work_in_keywords(exp.description, keywords, max_chars)
                if added:
                    exp = exp.model_copy(update={"description": description})
                    applied.extend(added)
                    changed.append(f"experience[{index}]")
            experience.append(exp)

        logger.debug("ats_content_optimized keywords=%s sections=%s", len(keywords), len(changed))
        return OptimizedContent(
            cv=cv.model_copy(update={"personal_info": personal_info, "experience": experience}),
            keywords=normalize_target_keywords(applied),
            changed_sections=changed,
        )
