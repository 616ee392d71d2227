from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import (
    ESSENTIAL_SECTIONS,
    contains_quantifiable_metrics,
    cv_to_text,
    data_completeness,
    has_consistent_date_formats,
    has_skills,
    has_valid_section,
    is_valid_email,
    normalize_skills,
    section_presence_ratio,
    skills_are_categorized,
)
from ats_engine.schemas.ats import ATSSystemConfig, ATSSystemSimulation
from ats_engine.schemas.cv import ParsedCV

logger = logging.getLogger(__name__)

Check = Callable[[ParsedCV], bool]


def _standard_sections(cv: ParsedCV) -> bool:
    return all(has_valid_section(cv, section) for section in ESSENTIAL_SECTIONS)


def _detailed_roles(cv: ParsedCV) -> bool:
    return any(exp.description and len(exp.description) > 100 for exp in cv.experience)


def _comprehensive_contact(cv: ParsedCV) -> bool:
    info = cv.personal_info
    return bool(info.name and info.email and info.phone)


def _job_progression(cv: ParsedCV) -> bool:
    return len(cv.experience) >= 2 and all(exp.start_date and exp.role for exp in cv.experience)


def _detailed_education(cv: ParsedCV) -> bool:
    return any(edu.degree and edu.institution and (edu.start_date or edu.end_date) for edu in cv.education)


def _simple_formatting(cv: ParsedCV) -> bool:
    return has_valid_section(cv, "personal_info") and bool(cv.experience)


def _detailed_experience(cv: ParsedCV) -> bool:
    return bool(cv.experience) and all(
        exp.role and exp.company and exp.description and len(exp.description) > 50 for exp in cv.experience
    )


def _proper_contact(cv: ParsedCV) -> bool:
    return is_valid_email(cv.personal_info.email) and bool(cv.personal_info.phone)


def _quantified_achievements(cv: ParsedCV) -> bool:
    texts = [exp.description for exp in cv.experience if exp.description]
    texts.extend(achievement for exp in cv.experience for achievement in exp.achievements)
    return any(contains_quantifiable_metrics(text) for text in texts)


def _titled_roles(cv: ParsedCV) -> bool:
    return bool(cv.experience) and all(exp.role for exp in cv.experience)


def _rich_skills(cv: ParsedCV) -> bool:
    return len(normalize_skills(cv.skills)) >= 5


CHECKS: Mapping[str, tuple[Check, str]] = MappingProxyType(
    {
        "education": (lambda cv: bool(cv.education), "Education section is missing"),
        "skills": (has_skills, "Skills section is missing"),
        "summary": (lambda cv: bool(cv.personal_info.summary), "Professional summary is missing"),
        "standard_sections": (_standard_sections, "Non-standard section headers may cause parsing issues"),
        "detailed_roles": (_detailed_roles, "Role descriptions lack sufficient detail"),
        "categorized_skills": (skills_are_categorized, "Skills section needs better organization"),
        "comprehensive_contact": (_comprehensive_contact, "Contact information is incomplete"),
        "job_progression": (_job_progression, "Career progression is unclear"),
        "detailed_education": (_detailed_education, "Education entries lack degree, institution or dates"),
        "consistent_dates": (has_consistent_date_formats, "Inconsistent date formats detected"),
        "simple_formatting": (_simple_formatting, "Document structure is too complex to parse reliably"),
        "detailed_experience": (_detailed_experience, "Experience entries lack complete descriptions"),
        "proper_contact": (_proper_contact, "Email or phone number is missing or malformed"),
        "quantified_achievements": (_quantified_achievements, "Achievements are not quantified"),
        "titled_roles": (_titled_roles, "Some positions have no job title"),
        "rich_skills": (_rich_skills, "Skills section lists fewer than five skills"),
    }
)

# Points awarded per passing check, per profile.
PARSING_CHECKS: Mapping[str, tuple[tuple[str, int], ...]] = MappingProxyType(
    {
        "workday": (("education", 8), ("skills", 10), ("summary", 7), ("standard_sections", 5)),
        "greenhouse": (("detailed_roles", 12), ("categorized_skills", 10), ("education", 8)),
        "lever": (("comprehensive_contact", 15), ("job_progression", 10), ("skills", 5)),
        "smartrecruiters": (("detailed_education", 12), ("consistent_dates", 10), ("standard_sections", 8)),
        "bamboohr": (("simple_formatting", 10), ("detailed_experience", 15), ("proper_contact", 5)),
        "icims": (("quantified_achievements", 15), ("categorized_skills", 10), ("job_progression", 5)),
        "taleo": (("standard_sections", 10), ("titled_roles", 10), ("comprehensive_contact", 10)),
    }
)

FORMAT_CHECKS: Mapping[str, tuple[tuple[str, int], ...]] = MappingProxyType(
    {
        "workday": (("standard_sections", 15), ("consistent_dates", 10), ("simple_formatting", 10)),
        "greenhouse": (("detailed_roles", 15), ("categorized_skills", 10), ("standard_sections", 10)),
        "lever": (("comprehensive_contact", 15), ("job_progression", 10), ("simple_formatting", 10)),
        "smartrecruiters": (("consistent_dates", 15), ("standard_sections", 10), ("detailed_education", 10)),
        "bamboohr": (("simple_formatting", 15), ("proper_contact", 10), ("detailed_experience", 10)),
        "icims": (("categorized_skills", 15), ("quantified_achievements", 10), ("job_progression", 10)),
        "taleo": (("standard_sections", 15), ("consistent_dates", 10), ("simple_formatting", 10)),
    }
)

_DEFAULT_PARSING_POINTS = 20
_DEFAULT_FORMAT_POINTS = 25

# Which check has to fail for a profile's documented common issue to apply to this CV.
# A None trigger means the issue is keyword driven.
ISSUE_TRIGGERS: Mapping[str, str | None] = MappingProxyType(
    {
        "complex formatting": "simple_formatting",
        "missing standard sections": "standard_sections",
        "poor keyword density": None,
        "inconsistent data format": "consistent_dates",
        "missing job descriptions": "detailed_roles",
        "poor skill categorization": "categorized_skills",
        "missing contact information": "comprehensive_contact",
        "unclear job titles": "titled_roles",
        "limited skills section": "rich_skills",
        "poor section headers": "standard_sections",
        "missing education details": "detailed_education",
        "inconsistent date formats": "consistent_dates",
        "complex tables": "simple_formatting",
        "missing experience descriptions": "detailed_experience",
        "poor contact formatting": "proper_contact",
        "missing skills categorization": "categorized_skills",
        "unclear role progression": "job_progression",
        "limited achievement details": "quantified_achievements",
        "headers and footers ignored": "comprehensive_contact",
        "non-standard job titles": "titled_roles",
        "missing exact keyword matches": None,
    }
)


SystemProfile = ATSSystemConfig | Mapping[str, Any] | None


def load_system_configs() -> Mapping[str, SystemProfile]:
    """The raw ATS profiles from config/scoring.yaml, read-only.

    Profiles are validated one at a time when they are simulated, so a broken
    entry only degrades its own simulation.
    """
    raw = get_scoring_value("ats_systems", {}) or {}
    if not isinstance(raw, dict) or not raw:
        raise RuntimeError("Scoring config has no 'ats_systems' profiles.")
    return MappingProxyType({str(name): values for name, values in raw.items()})


def resolve_system_config(system_name: str, profile: SystemProfile) -> ATSSystemConfig:
    if isinstance(profile, ATSSystemConfig):
        return profile
    if not isinstance(profile, Mapping):
        raise ValueError(f"no usable configuration for {system_name}")
    return ATSSystemConfig.model_validate(dict(profile))


def _run_check(name: str, cv: ParsedCV) -> bool:
    check, _ = CHECKS[name]
    return bool(check(cv))


def keyword_overlap(cv_text: str, preferred: tuple[str, ...]) -> float:
    if not preferred:
        return 0.0
    lowered = cv_text.lower()
    matched = sum(1 for keyword in preferred if keyword.lower() in lowered)
    return matched / len(preferred)


def calculate_parsing_accuracy(cv: ParsedCV, system_name: str) -> int:
    info = cv.personal_info
    accuracy = 0
    accuracy += 10 if info.name else 0
    accuracy += 10 if info.email else 0
    accuracy += 10 if info.phone else 0
    accuracy += 10 if cv.experience else 0

    checks = PARSING_CHECKS.get(system_name)
    if checks is None:
        accuracy += _DEFAULT_PARSING_POINTS
    else:
        accuracy += sum(points for name, points in checks if _run_check(name, cv))

    accuracy += round(data_completeness(cv) * 30)
    return min(accuracy, 100)


def calculate_keyword_matching(cv_text: str, config: ATSSystemConfig) -> int:
    score = 60 + round(keyword_overlap(cv_text, config.preferred_keywords) * 40)
    return min(score, 100)


def calculate_format_compatibility(cv: ParsedCV, system_name: str) -> int:
    score = round(section_presence_ratio(cv) * 40)

    checks = FORMAT_CHECKS.get(system_name)
    if checks is None:
        score += _DEFAULT_FORMAT_POINTS
    else:
        score += sum(points for name, points in checks if _run_check(name, cv))

    info = cv.personal_info
    score += 8 if info.email else 0
    score += 8 if info.phone else 0
    score += 9 if info.name else 0
    return min(score, 100)


def system_specific_issues(cv: ParsedCV, system_name: str, config: ATSSystemConfig, cv_text: str) -> list[str]:
    issues: list[str] = []
    weak_keywords = keyword_overlap(cv_text, config.preferred_keywords) < 0.5

    for issue in config.common_issues:
        trigger = ISSUE_TRIGGERS.get(issue.strip().lower(), "")
        if trigger is None:
            if weak_keywords:
                issues.append(issue)
        elif trigger and not _run_check(trigger, cv):
            issues.append(issue)

    checked = {name for name, _ in (*PARSING_CHECKS.get(system_name, ()), *FORMAT_CHECKS.get(system_name, ()))}
    for name in sorted(checked):
        check, message = CHECKS[name]
        if not check(cv) and message not in issues:
            issues.append(message)

    if cv.document_format and cv.document_format not in config.preferred_formats:
        preferred = ", ".join(fmt.upper() for fmt in config.preferred_formats)
        issues.append(
            f"{cv.document_format.upper()} documents are not preferred by {system_name}; submit as {preferred}"
        )
    return issues


def system_strengths(cv: ParsedCV) -> list[str]:
    strengths: list[str] = []
    if is_valid_email(cv.personal_info.email):
        strengths.append("Complete contact information")
    if cv.experience:
        strengths.append("Comprehensive work experience")
    if _detailed_roles(cv):
        strengths.append("Detailed role descriptions")
    if _quantified_achievements(cv):
        strengths.append("Quantified achievements")
    return strengths


def system_weaknesses(cv: ParsedCV, system_name: str, config: ATSSystemConfig, cv_text: str) -> list[str]:
    weaknesses: list[str] = []
    if not _standard_sections(cv):
        weaknesses.append("Non-standard section headers")
    if not has_consistent_date_formats(cv):
        weaknesses.append("Inconsistent date formatting")
    if not skills_are_categorized(cv.skills):
        weaknesses.append("Unorganized skills section")
    if keyword_overlap(cv_text, config.preferred_keywords) < 0.5:
        weaknesses.append(f"Few of the keywords {system_name} favours")
    return weaknesses


class SystemSimulationService:
    def __init__(self, systems: Mapping[str, SystemProfile] | None = None):
        self._systems = systems

    @property
    def systems(self) -> Mapping[str, SystemProfile]:
        return self._systems if self._systems is not None else load_system_configs()

    async def simulate_ats_systems(self, cv: ParsedCV) -> list[ATSSystemSimulation]:
        results: list[ATSSystemSimulation] = []
        for name, profile in self.systems.items():
            try:
                config = resolve_system_config(name, profile)
                results.append(self.simulate_system(cv, name, config))
            except Exception as exc:  # noqa: BLE001 - one profile must not sink the others
                logger.warning("ats_simulation_failed system=%s: %s", name, exc)
                results.append(
                    ATSSystemSimulation(
                        system_name=name,
                        pass_rate=0.0,
                        issues=[f"Simulation for {name} could not be completed: {exc}"],
                        suggestions=[],
                        confidence=0.0,
                    )
                )
        return results

    def simulate_system(self, cv: ParsedCV, system_name: str, config: ATSSystemConfig) -> ATSSystemSimulation:
        cv_text = cv_to_text(cv)
        parsing = calculate_parsing_accuracy(cv, system_name)
        keywords = calculate_keyword_matching(cv_text, config)
        formatting = calculate_format_compatibility(cv, system_name)
        content_baseline = float(get_scoring_value("simulation.content_baseline", 75))

        pass_rate = round(
            parsing * config.parsing_weight
            + keywords * config.keyword_weight
            + formatting * config.format_weight
            + content_baseline * config.content_weight
        )

        return ATSSystemSimulation(
            system_name=system_name,
            pass_rate=float(max(0, min(100, pass_rate))),
            issues=system_specific_issues(cv, system_name, config, cv_text),
            suggestions=list(config.optimization_tips[:5]),
            confidence=float(get_scoring_value("simulation.default_confidence", 0.8)),
            parsing_accuracy=parsing,
            keyword_matching=keywords,
            format_compatibility=formatting,
            strengths=system_strengths(cv),
            weaknesses=system_weaknesses(cv, system_name, config, cv_text),
        )
