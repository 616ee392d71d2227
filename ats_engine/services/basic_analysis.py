from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime, timezone

from ats_engine import __version__
from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import (
    cv_to_text,
    has_skills,
    normalize_skills,
    section_presence_ratio,
    skills_quality,
    word_count,
)
from ats_engine.features.keyword_extractor import count_occurrences, normalize_target_keywords
from ats_engine.schemas.ats import (
    AnalysisResult,
    ATSIssue,
    ATSSuggestion,
    KeywordSummary,
    ProcessingMetadata,
    ScoreBreakdown,
)
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.recommendations import fallback_recommendations
from ats_engine.services.verification import fallback_verification

_ACHIEVEMENT_METRIC_RE = re.compile(r"\d+[%$k]|\d+\.\d+|\d+\s*times|\d+\s*percent", re.IGNORECASE)
_SPECIFIC_RESULT_RE = re.compile(r"\d+[%$]?|\$\d+|increased|decreased|improved|reduced|generated|saved", re.IGNORECASE)
_SPECIFIC_SUMMARY_RE = re.compile(r"\d+\s*(?:years?|months?)|experienced|expert|proficient|specialized", re.IGNORECASE)


def experience_score(cv: ParsedCV) -> int:
    if not cv.experience:
        return 30
    score = 50
    if len(cv.experience) > 3:
        score += 20
    elif len(cv.experience) > 1:
        score += 10

    well_described = sum(1 for exp in cv.experience if exp.description and len(exp.description) > 100)
    score += min(well_described * 5, 20)

    complete = sum(1 for exp in cv.experience if exp.company and exp.role and exp.start_date)
    score += min(complete * 3, 10)
    return min(score, 100)


def education_score(cv: ParsedCV) -> int:
    if not cv.education:
        return 40
    score = 60
    complete = sum(1 for edu in cv.education if edu.institution and edu.degree and edu.field)
    score += min(complete * 15, 30)
    if len(cv.education) > 1:
        score += 10
    return min(score, 100)


def achievements_score(cv: ParsedCV) -> int:
    if not cv.achievements:
        return 40
    score = 50
    count = len(cv.achievements)
    if count > 5:
        score += 25
    elif count > 2:
        score += 15
    else:
        score += 5
    quantified = sum(1 for item in cv.achievements if _ACHIEVEMENT_METRIC_RE.search(item))
    score += min(quantified * 5, 25)
    return min(score, 100)


def basic_parsing_score(cv: ParsedCV) -> int:
    info = cv.personal_info
    score = 0
    score += 20 if info.name else 0
    score += 20 if info.email else 0
    score += 10 if info.phone else 0
    score += 20 if cv.experience else 0
    score += 15 if cv.education else 0
    score += 15 if has_skills(cv) else 0
    return min(score, 100)


def basic_formatting_score(cv: ParsedCV) -> int:
    info = cv.personal_info
    score = section_presence_ratio(cv) * 40
    score += 20 if info.email and "@" in info.email else 0
    score += 20 if info.phone else 0
    score += 20 if info.name and len(info.name) > 2 else 0
    return min(round(score), 100)


def basic_content_score(cv: ParsedCV) -> int:
    score = 0.0
    if cv.experience:
        average = sum(len(exp.description or "") for exp in cv.experience) / len(cv.experience)
        score += min(average / 10, 40)
    if cv.personal_info.summary and len(cv.personal_info.summary) > 50:
        score += 30
    score += min(len(normalize_skills(cv.skills)) / 2, 30)
    return min(round(score), 100)


def basic_specificity_score(cv: ParsedCV) -> int:
    score = 0
    if any(
        _SPECIFIC_RESULT_RE.search(" ".join([exp.description or "", *exp.achievements])) for exp in cv.experience
    ):
        score += 40
    if len(normalize_skills(cv.skills)) >= 5:
        score += 30
    if any(edu.gpa or edu.honors or edu.coursework for edu in cv.education):
        score += 20
    if cv.personal_info.summary and _SPECIFIC_SUMMARY_RE.search(cv.personal_info.summary):
        score += 10
    return min(score, 100)


def basic_keyword_summary(cv: ParsedCV, target_keywords: Sequence[str]) -> KeywordSummary:
    text = cv_to_text(cv)
    found: list[str] = []
    missing: list[str] = []
    for keyword in normalize_target_keywords(target_keywords):
        (found if count_occurrences(keyword, text) > 0 else missing).append(keyword)

    total_words = word_count(text)
    hits = sum(count_occurrences(keyword, text) for keyword in found)
    return KeywordSummary(
        found=found,
        missing=missing,
        recommended=list(missing),
        density=hits / total_words if total_words else 0.0,
    )


def basic_keyword_score(summary: KeywordSummary) -> int:
    total = len(summary.found) + len(summary.missing)
    if total == 0:
        return 60
    return round(len(summary.found) / total * 100)


def basic_overall(cv: ParsedCV) -> int:
    weights = get_scoring_value("fallback.weights", {}) or {}
    overall = round(
        basic_parsing_score(cv) * float(weights.get("parsing", 0.4))
        + basic_formatting_score(cv) * float(weights.get("formatting", 0.3))
        + basic_content_score(cv) * float(weights.get("content", 0.3))
    )
    return max(0, min(100, overall))


def basic_issues(cv: ParsedCV) -> list[ATSIssue]:
    info = cv.personal_info
    issues: list[ATSIssue] = []
    if not info.name:
        issues.append(ATSIssue(type="critical", description="Missing name in personal information", severity="high", location="personal_info"))
    if not info.email:
        issues.append(ATSIssue(type="critical", description="Missing email address", severity="high", location="personal_info"))
    if not cv.experience:
        issues.append(ATSIssue(type="warning", description="No work experience provided", severity="medium", location="experience"))
    if not has_skills(cv):
        issues.append(ATSIssue(type="warning", description="No skills section found", severity="medium", location="skills"))
    if not info.summary:
        issues.append(ATSIssue(type="info", description="Consider adding a professional summary", severity="low", location="summary"))
    return issues


def basic_suggestions(cv: ParsedCV, keywords: KeywordSummary) -> list[ATSSuggestion]:
    suggestions: list[ATSSuggestion] = []
    if not cv.personal_info.summary:
        suggestions.append(
            ATSSuggestion(
                category="summary",
                suggestion="Add a professional summary to highlight your key strengths",
                impact="medium",
                implementation="Write two or three sentences summarizing your experience and focus",
            )
        )
    if keywords.missing:
        suggestions.append(
            ATSSuggestion(
                category="keywords",
                suggestion=f"Include relevant keywords: {', '.join(keywords.missing[:3])}",
                impact="high",
                implementation="Work the keywords into your experience descriptions and skills section",
            )
        )
    if any(not exp.description or len(exp.description) < 50 for exp in cv.experience):
        suggestions.append(
            ATSSuggestion(
                category="experience",
                suggestion="Enhance experience descriptions with specific achievements and responsibilities",
                impact="high",
                implementation="Describe each role with action verbs and measurable results",
            )
        )
    return suggestions


def build_basic_analysis(
    cv: ParsedCV,
    target_keywords: Sequence[str] | None = None,
    *,
    processing_time_ms: int = 0,
    stages: Sequence[str] = (),
) -> AnalysisResult:
    """Fully local analysis used whenever the advanced pipeline cannot finish."""
    keywords = basic_keyword_summary(cv, list(target_keywords or []))
    overall = basic_overall(cv)
    threshold = int(get_scoring_value("scoring.pass_threshold", 75))

    return AnalysisResult(
        overall=overall,
        passes=overall >= threshold,
        breakdown=ScoreBreakdown(
            parsing=basic_parsing_score(cv),
            formatting=basic_formatting_score(cv),
            keywords=basic_keyword_score(keywords),
            content=basic_content_score(cv),
            specificity=basic_specificity_score(cv),
            experience=experience_score(cv),
            education=education_score(cv),
            skills=round(skills_quality(cv) * 100),
            achievements=achievements_score(cv),
        ),
        recommendations=fallback_recommendations(),
        issues=basic_issues(cv),
        suggestions=basic_suggestions(cv, keywords),
        keywords=keywords,
        verification=fallback_verification(),
        metadata=ProcessingMetadata(
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=f"{__version__}-fallback",
            confidence=float(get_scoring_value("fallback.confidence", 0.7)),
            degraded=True,
            processing_time_ms=processing_time_ms,
            stages=list(stages),
        ),
    )
