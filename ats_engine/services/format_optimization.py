from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import ValidationError

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import (
    cv_to_text,
    has_consistent_date_formats,
    has_valid_section,
    is_valid_email,
)
from ats_engine.schemas.ats import ATSTemplate, FormatAnalysis
from ats_engine.schemas.cv import FlatSkills, ParsedCV

logger = logging.getLogger(__name__)

ESSENTIAL_FORMAT_SECTIONS = ("personal_info", "experience")
RECOMMENDED_FORMAT_SECTIONS = ("education", "skills")
UNIVERSAL = "universal"

# Issue fragment -> recommendation; the first matching fragment wins.
_ISSUE_RECOMMENDATIONS = (
    ("missing essential section", "Add all essential sections for complete ATS parsing"),
    ("date formatting", "Standardize all dates to MM/YYYY format"),
    ("email format", "Ensure email address follows standard format"),
    ("phone number missing", "Add phone number to contact information"),
    ("experience entries are incomplete", "Complete all experience entries with role, company, and description"),
    ("too lengthy", "Consider condensing lengthy sections for better ATS processing"),
)

GENERAL_FORMAT_RECOMMENDATIONS = (
    "Use standard section headers (Experience, Education, Skills)",
    "Maintain consistent formatting throughout the document",
    "Use simple, ATS-friendly fonts (Arial, Calibri, Times New Roman)",
)


def load_template_library() -> list[ATSTemplate]:
    """Templates from config/scoring.yaml in file order; unreadable entries are skipped."""
    raw = get_scoring_value("templates", []) or []
    if not isinstance(raw, list):
        logger.warning("ats_templates_invalid type=%s", type(raw).__name__)
        return []

    templates: list[ATSTemplate] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            logger.warning("ats_template_skipped index=%s: not a mapping", index)
            continue
        try:
            templates.append(ATSTemplate.model_validate(dict(entry)))
        except ValidationError as exc:
            logger.warning("ats_template_skipped index=%s errors=%s", index, exc.error_count())
    return templates


def _matches(value: str | None, wanted: str) -> bool:
    if not value:
        return True
    lowered = value.strip().lower()
    return lowered == wanted or UNIVERSAL in lowered


def section_structure_issues(cv: ParsedCV) -> list[str]:
    issues = [
        f"Missing essential section: {section}"
        for section in ESSENTIAL_FORMAT_SECTIONS
        if not has_valid_section(cv, section)
    ]
    issues.extend(
        f"Missing recommended section: {section}"
        for section in RECOMMENDED_FORMAT_SECTIONS
        if not has_valid_section(cv, section)
    )
    incomplete = sum(1 for exp in cv.experience if not (exp.role and exp.company and exp.description))
    if incomplete:
        issues.append(f"{incomplete} experience entries are incomplete")
    return issues


def consistency_issues(cv: ParsedCV) -> list[str]:
    info = cv.personal_info
    issues: list[str] = []
    if not has_consistent_date_formats(cv):
        issues.append("Inconsistent date formatting detected")
    if info.email and not is_valid_email(info.email):
        issues.append("Email format appears invalid")
    if not info.phone:
        issues.append("Phone number missing from contact information")
    return issues


def ats_friendliness_issues(cv: ParsedCV) -> list[str]:
    info = cv.personal_info
    issues: list[str] = []
    if not (info.name or info.email or info.phone):
        issues.append("Contact information section not properly structured")

    max_flat = int(get_scoring_value("format.max_flat_skills", 50))
    if isinstance(cv.skills, FlatSkills) and len(cv.skills.items) > max_flat:
        issues.append("Too many individual skills listed - consider grouping by category")

    max_chars = int(get_scoring_value("format.lengthy_description_chars", 1000))
    if any(exp.description and len(exp.description) > max_chars for exp in cv.experience):
        issues.append("Some experience descriptions may be too lengthy")
    return issues


def format_recommendations(issues: list[str]) -> list[str]:
    recommendations: list[str] = []
    for issue in issues:
        lowered = issue.lower()
        for fragment, recommendation in _ISSUE_RECOMMENDATIONS:
            if fragment in lowered:
                if recommendation not in recommendations:
                    recommendations.append(recommendation)
                break
    recommendations.extend(rec for rec in GENERAL_FORMAT_RECOMMENDATIONS if rec not in recommendations)
    return recommendations


def format_score(issues: list[str]) -> int:
    weights = get_scoring_value("format.severity_weights", {}) or {}
    score = 100
    for issue in issues:
        lowered = issue.lower()
        for fragment, weight in weights.items():
            if str(fragment).lower() in lowered:
                score -= int(weight)
                break
    return max(score, 0)


class FormatOptimizationService:
    """Format compatibility checks and the ATS-friendly template library."""

    def __init__(self, templates: list[ATSTemplate] | None = None):
        self._templates = templates

    @property
    def templates(self) -> list[ATSTemplate]:
        return list(self._templates) if self._templates is not None else load_template_library()

    def get_ats_templates(self, industry: str | None = None, role: str | None = None) -> list[ATSTemplate]:
        """Templates that suit the industry and role, best average compatibility first."""
        templates = self.templates
        if industry and industry.strip():
            wanted = industry.strip().lower()
            templates = [template for template in templates if _matches(template.industry, wanted)]
        if role and role.strip():
            wanted = role.strip().lower()
            templates = [template for template in templates if _matches(template.role, wanted)]
        return sorted(templates, key=lambda template: template.average_compatibility, reverse=True)

    def analyze_format_compatibility(self, cv: ParsedCV) -> FormatAnalysis:
        issues = [*section_structure_issues(cv), *consistency_issues(cv), *ats_friendliness_issues(cv)]
        return FormatAnalysis(
            overall_score=format_score(issues),
            issues=issues,
            recommendations=format_recommendations(issues),
            best_templates=self.recommend_templates(cv),
        )

    def recommend_templates(self, cv: ParsedCV) -> list[str]:
        limit = int(get_scoring_value("format.max_best_templates", 3))
        text = cv_to_text(cv).lower()
        picks: list[str] = []
        for template in self.templates:
            if not template.signals or any(signal.lower() in text for signal in template.signals):
                picks.append(template.id)
        return picks[:limit]
