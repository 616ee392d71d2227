from __future__ import annotations

import logging
from collections.abc import Sequence

from ats_engine.ai.types import AIClient, CompletionRequest
from ats_engine.core.config import Settings, settings as default_settings
from ats_engine.features.cv_text import cv_sections, cv_to_text, word_count
from ats_engine.features.keyword_extractor import KeywordExtractor, normalize_target_keywords
from ats_engine.features.keyword_recommendations import KeywordRecommendationEngine
from ats_engine.schemas.ats import SemanticKeywordAnalysis
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.ats_llm import generate_text
from ats_engine.services.interpreters import parse_extracted_keywords, parse_keyword_suggestions

logger = logging.getLogger(__name__)

_ANALYSIS_SYSTEM = "You are an expert in ATS keyword optimization and semantic analysis."
_KEYWORDS_SYSTEM = "You are an expert recruiter and ATS specialist."


def _build_analysis_prompt(
    cv_text: str,
    job_description: str | None,
    target_keywords: Sequence[str],
    industry: str | None,
) -> str:
    lines = [
        "Analyze this CV for semantic keyword optimization:",
        "",
        f"CV Content: {cv_text[:2000]}",
    ]
    if job_description:
        lines.append(f"Job Description: {job_description[:500]}")
    if target_keywords:
        lines.append(f"Target Keywords: {', '.join(target_keywords)}")
    if industry:
        lines.append(f"Industry: {industry}")
    lines.append("")
    lines.append(
        "List additional keywords the CV should include, one per bullet line "
        "in the form '- keyword: reason', then give optimization recommendations."
    )
    return "\n".join(lines)


class KeywordAnalysisService:
    def __init__(
        self,
        client: AIClient | None = None,
        *,
        extractor: KeywordExtractor | None = None,
        recommender: KeywordRecommendationEngine | None = None,
        cfg: Settings | None = None,
    ):
        self._client = client
        self._extractor = extractor or KeywordExtractor()
        self._recommender = recommender or KeywordRecommendationEngine()
        self._cfg = cfg or default_settings

    async def perform_semantic_keyword_analysis(
        self,
        cv: ParsedCV,
        job_description: str | None = None,
        target_keywords: Sequence[str] | None = None,
        industry: str | None = None,
    ) -> SemanticKeywordAnalysis:
        targets = normalize_target_keywords(target_keywords)
        analysis = self.local_analysis(cv, targets, industry)

        cv_text = cv_to_text(cv)
        request = CompletionRequest(
            prompt=_build_analysis_prompt(cv_text, job_description, targets, industry),
            system=_ANALYSIS_SYSTEM,
            max_tokens=self._cfg.llm_max_tokens,
            temperature=self._cfg.llm_temperature,
        )
        text = await generate_text(self._client, request, timeout_s=self._cfg.llm_timeout_s, label="keyword_analysis")
        if text is None:
            return analysis

        known = [*targets, *(match.keyword for match in analysis.industry_terms)]
        trending = parse_keyword_suggestions(text, exclude=known)
        logger.debug("keyword_analysis_enriched trending=%s", len(trending))
        return analysis.model_copy(update={"trending_keywords": trending})

    def local_analysis(
        self,
        cv: ParsedCV,
        target_keywords: Sequence[str],
        industry: str | None = None,
    ) -> SemanticKeywordAnalysis:
        cv_text = cv_to_text(cv)
        sections = cv_sections(cv)
        targets = normalize_target_keywords(target_keywords)

        matched = self._extractor.extract_keywords(cv_text, targets, industry, sections)
        found = {match.keyword.lower() for match in matched}
        missing = [keyword for keyword in targets if keyword.lower() not in found]

        total_words = word_count(cv_text)
        density = sum(match.frequency for match in matched) / total_words if total_words else 0.0
        optimal = self._extractor.get_optimal_keyword_density(industry)

        return SemanticKeywordAnalysis(
            primary_keywords=matched,
            industry_terms=self._extractor.industry_terms(cv_text, targets, industry, sections),
            missing_keywords=missing,
            keyword_density=density,
            optimal_density=optimal,
            semantic_variations=self._extractor.find_semantic_variations(matched, cv_text),
            trending_keywords=[],
            recommendations=self._recommender.generate_recommendations(matched, missing, density, optimal),
        )

    async def generate_keywords(
        self,
        job_description: str,
        industry: str | None = None,
        role: str | None = None,
    ) -> list[str]:
        prompt = f"Extract 15-25 ATS keywords, one per line, from: {(job_description or '')[:1500]}"
        if industry:
            prompt += f" Industry: {industry}"
        if role:
            prompt += f" Role: {role}"

        request = CompletionRequest(prompt=prompt, system=_KEYWORDS_SYSTEM, max_tokens=1000, temperature=0.1)
        text = await generate_text(self._client, request, timeout_s=self._cfg.llm_timeout_s, label="generate_keywords")
        keywords = parse_extracted_keywords(text or "")
        if not keywords:
            return self._extractor.get_fallback_keywords(industry, role)
        return keywords
