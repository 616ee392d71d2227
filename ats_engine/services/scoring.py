"""Weighted composite ATS score.

All helpers are pure functions of the CV and the keyword analysis so the
overall score is reproducible for identical inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import (
    collect_dates,
    data_completeness,
    data_consistency,
    experience_quality,
    is_valid_date_format,
    is_valid_email,
    normalize_skills,
    quantified_achievement_ratio,
    section_presence_ratio,
    skills_quality,
)
from ats_engine.schemas.ats import (
    AdvancedATSScore,
    ATSSystemSimulation,
    CompetitorAnalysis,
    ScoreBreakdown,
    SemanticKeywordAnalysis,
)
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.basic_analysis import achievements_score, education_score, experience_score

logger = logging.getLogger(__name__)

_PROFESSIONAL_WORDS = ("experience", "skilled", "expertise", "professional", "accomplished", "proven")
_SUMMARY_ACTION_WORDS = ("managed", "led", "developed", "implemented", "achieved", "improved")
_TECHNICAL_TERMS = (
    "api",
    "database",
    "cloud",
    "framework",
    "library",
    "programming",
    "software",
    "system",
    "platform",
    "tool",
    "technology",
    "protocol",
)


def scoring_weights() -> dict[str, float]:
    raw = get_scoring_value("scoring.weights", {}) or {}
    return {
        "parsing": float(raw.get("parsing", 0.25)),
        "keywords": float(raw.get("keywords", 0.30)),
        "formatting": float(raw.get("formatting", 0.20)),
        "content": float(raw.get("content", 0.25)),
    }


def composite_score(parsing: int, keywords: int, formatting: int, content: int) -> int:
    weights = scoring_weights()
    overall = round(
        parsing * weights["parsing"]
        + keywords * weights["keywords"]
        + formatting * weights["formatting"]
        + content * weights["content"]
    )
    return max(0, min(100, overall))


def summary_quality(summary: str | None) -> float:
    if not summary or len(summary) < 20:
        return 0.0
    score = 0.0
    if 100 <= len(summary) <= 300:
        score += 0.4
    elif len(summary) >= 50:
        score += 0.2

    lowered = summary.lower()
    professional = sum(1 for word in _PROFESSIONAL_WORDS if word in lowered)
    score += min(professional / len(_PROFESSIONAL_WORDS), 0.4)
    actions = sum(1 for word in _SUMMARY_ACTION_WORDS if word in lowered)
    score += min(actions / 3, 0.2)
    return min(score, 1.0)


def technical_depth(cv: ParsedCV) -> float:
    skills = normalize_skills(cv.skills)
    if not skills:
        return 0.0
    technical = [skill for skill in skills if any(term in skill.lower() for term in _TECHNICAL_TERMS)]
    return len(technical) / len(skills)


def parsing_score(cv: ParsedCV) -> int:
    info = cv.personal_info
    score = 0
    score += 10 if info.name else 0
    score += 10 if is_valid_email(info.email) else 0
    score += 5 if info.phone else 0
    score += 15 if cv.experience else 0

    score += 10 if cv.education else 0
    score += 10 if normalize_skills(cv.skills) else 0
    score += 10 if info.summary else 0

    score += 5 if cv.certifications else 0
    score += 5 if cv.projects else 0
    score += 5 if cv.languages else 0
    score += 5 if cv.achievements else 0

    score += round(experience_quality(cv) * 10)
    return min(score, 100)


def keyword_score(analysis: SemanticKeywordAnalysis) -> int:
    matched = analysis.primary_keywords
    total = len(matched) + len(analysis.missing_keywords)
    score = 0
    if total > 0:
        score += round(len(matched) / total * 40)

    density = analysis.keyword_density
    optimal = analysis.optimal_density
    if density > 0:
        closeness = max(0.0, 1 - abs(density - optimal) / optimal)
        score += round(closeness * 25)

    if matched:
        score += round(sum(match.importance for match in matched) / len(matched) * 25)

    score += min(len(analysis.semantic_variations) * 2, 10)
    return min(score, 100)


def date_validity_points(cv: ParsedCV) -> int:
    dates = collect_dates(cv)
    if not dates:
        return 10
    valid = sum(1 for value in dates if is_valid_date_format(value))
    return round(valid / len(dates) * 20)


def formatting_score(cv: ParsedCV) -> int:
    score = round(section_presence_ratio(cv) * 30)
    score += date_validity_points(cv)
    score += 10 if is_valid_email(cv.personal_info.email) else 0
    score += 10 if cv.personal_info.phone else 0
    score += round(data_consistency(cv) * 30)
    return min(score, 100)


def content_score(cv: ParsedCV) -> int:
    score = 0
    if cv.experience:
        score += round(experience_quality(cv) * 40)
    score += round(skills_quality(cv) * 25)
    if cv.personal_info.summary:
        score += round(summary_quality(cv.personal_info.summary) * 20)
    score += round(quantified_achievement_ratio(cv) * 15)
    return min(score, 100)


def specificity_score(cv: ParsedCV, analysis: SemanticKeywordAnalysis) -> int:
    factors = [quantified_achievement_ratio(cv), technical_depth(cv)]
    matched = analysis.primary_keywords
    if matched:
        factors.append(sum(0.8 if match.context else 0.3 for match in matched) / len(matched))
    return max(0, min(100, round(sum(factors) / len(factors) * 100)))


def confidence_score(cv: ParsedCV, analysis: SemanticKeywordAnalysis) -> float:
    keyword_strength = 0.9 if len(analysis.primary_keywords) > 3 else 0.6
    factors = (data_completeness(cv), keyword_strength, data_consistency(cv))
    return round(sum(factors) / len(factors), 2)


def compute_breakdown(cv: ParsedCV, analysis: SemanticKeywordAnalysis) -> ScoreBreakdown:
    return ScoreBreakdown(
        parsing=parsing_score(cv),
        formatting=formatting_score(cv),
        keywords=keyword_score(analysis),
        content=content_score(cv),
        specificity=specificity_score(cv, analysis),
        experience=experience_score(cv),
        education=education_score(cv),
        skills=round(skills_quality(cv) * 100),
        achievements=achievements_score(cv),
    )


def estimated_pass_rate(overall: int, simulations: Sequence[ATSSystemSimulation]) -> float:
    """Mean pass rate of the profiles that completed; the overall score stands in when none did."""
    completed = [sim.pass_rate for sim in simulations if sim.confidence > 0]
    if not completed:
        return overall / 100
    return round(sum(completed) / len(completed) / 100, 4)


class ATSScoringService:
    def calculate_advanced_score(
        self,
        cv: ParsedCV,
        semantic_analysis: SemanticKeywordAnalysis,
        system_simulations: Sequence[ATSSystemSimulation],
        competitor_benchmark: CompetitorAnalysis | None = None,
    ) -> AdvancedATSScore:
        breakdown = compute_breakdown(cv, semantic_analysis)
        overall = composite_score(breakdown.parsing, breakdown.keywords, breakdown.formatting, breakdown.content)
        factor = float(get_scoring_value("scoring.industry_benchmark_factor", 0.9))

        logger.debug(
            "ats_score_computed overall=%s parsing=%s keywords=%s formatting=%s content=%s",
            overall,
            breakdown.parsing,
            breakdown.keywords,
            breakdown.formatting,
            breakdown.content,
        )
        return AdvancedATSScore(
            overall=overall,
            breakdown=breakdown,
            recommendations=[],
            competitor_analysis=competitor_benchmark or CompetitorAnalysis(benchmark_score=overall),
            semantic_keywords=semantic_analysis,
            industry_benchmark=round(overall * factor, 2),
            estimated_pass_rate=estimated_pass_rate(overall, system_simulations),
            simulation_results=list(system_simulations),
            confidence=confidence_score(cv, semantic_analysis),
        )
