from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import ACTION_VERBS
from ats_engine.schemas.ats import KeywordMatch

IMPORTANT_SECTIONS = ("summary", "experience", "skills", "achievements")
_BASE_FALLBACK_KEYWORDS = ("experience", "management", "team", "project", "development")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def industry_key(industry: str | None) -> str | None:
    if not industry:
        return None
    lowered = industry.strip().lower()
    return lowered or None


def industry_keywords(industry: str | None) -> tuple[str, ...]:
    key = industry_key(industry)
    if key is None or key == "default":
        return ()
    values = get_scoring_value(f"industries.{key}.keywords", None)
    if not isinstance(values, list):
        return ()
    return tuple(str(value) for value in values)


def normalize_target_keywords(keywords: Sequence[str] | None) -> list[str]:
    """Stripped, non-blank targets with case-insensitive duplicates removed; first spelling wins."""
    targets: list[str] = []
    seen: set[str] = set()
    for keyword in keywords or ():
        cleaned = (keyword or "").strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            targets.append(cleaned)
    return targets


def count_occurrences(keyword: str, text: str) -> int:
    needle = (keyword or "").strip().lower()
    if not needle:
        return 0
    return len(re.findall(re.escape(needle), (text or "").lower()))


class KeywordExtractor:
    """Matches target and industry keywords in CV text and scores their relevance."""

    def extract_keywords(
        self,
        cv_text: str,
        target_keywords: Sequence[str],
        industry: str | None = None,
        sections: Mapping[str, str] | None = None,
    ) -> list[KeywordMatch]:
        matches: list[KeywordMatch] = []
        for keyword in normalize_target_keywords(target_keywords):
            match = self._match(keyword, cv_text, industry, sections)
            if match is not None:
                matches.append(match)
        return matches

    def industry_terms(
        self,
        cv_text: str,
        target_keywords: Sequence[str],
        industry: str | None = None,
        sections: Mapping[str, str] | None = None,
    ) -> list[KeywordMatch]:
        targets = {(keyword or "").strip().lower() for keyword in target_keywords}
        matches: list[KeywordMatch] = []
        for term in industry_keywords(industry):
            if term.lower() in targets:
                continue
            match = self._match(term, cv_text, industry, sections)
            if match is not None:
                matches.append(match)
        return matches

    def _match(
        self,
        keyword: str,
        cv_text: str,
        industry: str | None,
        sections: Mapping[str, str] | None,
    ) -> KeywordMatch | None:
        frequency = count_occurrences(keyword, cv_text)
        if frequency <= 0:
            return None
        return KeywordMatch(
            keyword=keyword,
            variations=(keyword,),
            frequency=frequency,
            importance=self.calculate_keyword_relevance(keyword, industry, sections),
            context=tuple(self.extract_keyword_context(keyword, cv_text)),
        )

    def calculate_keyword_relevance(
        self,
        keyword: str,
        industry: str | None = None,
        sections: Mapping[str, str] | None = None,
    ) -> float:
        relevance = 0.5
        lowered = keyword.lower()
        for section in IMPORTANT_SECTIONS:
            section_text = (sections or {}).get(section) or ""
            if lowered in section_text.lower():
                relevance += 0.1

        if lowered in {term.lower() for term in industry_keywords(industry)}:
            relevance += 0.2

        if lowered in ACTION_VERBS:
            relevance += 0.1

        return round(min(relevance, 1.0), 4)

    def extract_keyword_context(self, keyword: str, cv_text: str) -> list[str]:
        limit = int(get_scoring_value("keywords.max_context_snippets", 3))
        max_chars = int(get_scoring_value("keywords.context_max_chars", 100))
        lowered = keyword.lower()
        contexts: list[str] = []
        for sentence in _SENTENCE_SPLIT_RE.split(cv_text or ""):
            if lowered in sentence.lower():
                contexts.append(sentence.strip()[:max_chars])
                if len(contexts) >= limit:
                    break
        return contexts

    def find_semantic_variations(self, matches: Sequence[KeywordMatch], cv_text: str) -> list[str]:
        limit = int(get_scoring_value("keywords.max_variations", 10))
        words = (cv_text or "").lower().split()
        variations: list[str] = []
        for match in matches:
            keyword = match.keyword.lower()
            for word in words:
                if keyword in word and word != keyword and len(word) > len(keyword) and word not in variations:
                    variations.append(word)
        return variations[:limit]

    def get_fallback_keywords(self, industry: str | None = None, role: str | None = None) -> list[str]:
        keywords = list(_BASE_FALLBACK_KEYWORDS)
        keywords.extend(industry_keywords(industry)[:10])
        if role:
            keywords.extend(word for word in role.lower().split() if len(word) > 2 and word not in keywords)
        return keywords

    def get_optimal_keyword_density(self, industry: str | None = None) -> float:
        default = float(get_scoring_value("keywords.default_optimal_density", 0.03))
        key = industry_key(industry)
        if key is None:
            return default
        return float(get_scoring_value(f"keywords.optimal_density.{key}", default))
