from __future__ import annotations

import re

from ats_engine.schemas.cv import CategorizedSkills, FlatSkills, ParsedCV, Skills

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_DATE_FORMATS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("YYYY-MM-DD", re.compile(r"^\d{4}-\d{2}-\d{2}$")),
    ("MM/DD/YYYY", re.compile(r"^\d{2}/\d{2}/\d{4}$")),
    ("YYYY/MM/DD", re.compile(r"^\d{4}/\d{2}/\d{2}$")),
    ("MM/YYYY", re.compile(r"^\d{2}/\d{4}$")),
    ("Mon YYYY", re.compile(rf"^{_MONTHS}\s\d{{4}}$", re.IGNORECASE)),
    ("YYYY", re.compile(r"^\d{4}$")),
)
_METRIC_PATTERNS = (
    re.compile(r"\d+%"),
    re.compile(r"\$\d+"),
    re.compile(r"\d+\s*(?:million|thousand|k|m)\b", re.IGNORECASE),
    re.compile(r"\d+\s*(?:years?|months?|weeks?)", re.IGNORECASE),
    re.compile(r"\d+\s*(?:people|employees|members|clients|customers)", re.IGNORECASE),
    re.compile(r"increased?.*\d+", re.IGNORECASE),
    re.compile(r"reduced?.*\d+", re.IGNORECASE),
    re.compile(r"improved?.*\d+", re.IGNORECASE),
)

ESSENTIAL_SECTIONS = ("personal_info", "experience", "education", "skills")

ACTION_VERBS = (
    "achieved",
    "implemented",
    "developed",
    "managed",
    "led",
    "created",
    "optimized",
    "improved",
    "increased",
    "reduced",
    "streamlined",
    "delivered",
    "executed",
    "collaborated",
    "designed",
    "analyzed",
    "established",
    "maintained",
    "coordinated",
)


def normalize_skills(skills: Skills | None) -> list[str]:
    """Flatten either skills shape into one list; the only place that reads the union."""
    if skills is None:
        return []
    if isinstance(skills, FlatSkills):
        raw = skills.items
    else:
        raw = [item for items in skills.categories.values() for item in items]
    return [item.strip() for item in raw if item and item.strip()]


def skills_are_categorized(skills: Skills | None) -> bool:
    return isinstance(skills, CategorizedSkills) and bool(normalize_skills(skills))


def has_skills(cv: ParsedCV) -> bool:
    return bool(normalize_skills(cv.skills))


def has_valid_section(cv: ParsedCV, section: str) -> bool:
    if section == "personal_info":
        return any(value for value in cv.personal_info.model_dump().values())
    if section == "skills":
        return has_skills(cv)
    value = getattr(cv, section, None)
    if isinstance(value, list):
        return len(value) > 0
    return bool(value)


def section_presence_ratio(cv: ParsedCV) -> float:
    present = [section for section in ESSENTIAL_SECTIONS if has_valid_section(cv, section)]
    return len(present) / len(ESSENTIAL_SECTIONS)


def cv_to_text(cv: ParsedCV) -> str:
    parts: list[str] = []
    if cv.personal_info.summary:
        parts.append(cv.personal_info.summary)
    for exp in cv.experience:
        parts.extend(value for value in (exp.role, exp.company, exp.description) if value)
        parts.extend(exp.achievements)
    for edu in cv.education:
        parts.extend(value for value in (edu.degree, edu.institution) if value)
    skills = normalize_skills(cv.skills)
    if skills:
        parts.append(" ".join(skills))
    parts.extend(cv.achievements)
    return " ".join(part.strip() for part in parts if part and part.strip())


def cv_sections(cv: ParsedCV) -> dict[str, str]:
    experience_parts: list[str] = []
    for exp in cv.experience:
        experience_parts.extend(value for value in (exp.role, exp.company, exp.description) if value)
        experience_parts.extend(exp.achievements)
        experience_parts.extend(exp.technologies)
    return {
        "summary": cv.personal_info.summary or "",
        "experience": " ".join(experience_parts),
        "skills": " ".join(normalize_skills(cv.skills)),
        "achievements": " ".join(cv.achievements),
    }


def word_count(text: str) -> int:
    return len((text or "").split())


def is_valid_email(email: str | None) -> bool:
    return bool(email and _EMAIL_RE.match(email.strip()))


def date_format(value: str) -> str:
    stripped = (value or "").strip()
    for name, pattern in _DATE_FORMATS:
        if pattern.match(stripped):
            return name
    return "unknown"


def is_valid_date_format(value: str) -> bool:
    return date_format(value) != "unknown"


def collect_dates(cv: ParsedCV) -> list[str]:
    dates: list[str] = []
    for entry in [*cv.experience, *cv.education]:
        if entry.start_date:
            dates.append(entry.start_date)
        if entry.end_date:
            dates.append(entry.end_date)
    return dates


def has_consistent_date_formats(cv: ParsedCV) -> bool:
    dates = collect_dates(cv)
    if len(dates) < 2:
        return True
    return len({date_format(value) for value in dates}) == 1


def contains_quantifiable_metrics(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in _METRIC_PATTERNS)


def contains_action_verbs(text: str) -> bool:
    lowered = (text or "").lower()
    return any(verb in lowered for verb in ACTION_VERBS)


def experience_quality(cv: ParsedCV) -> float:
    """Average per-entry completeness in [0, 1]."""
    if not cv.experience:
        return 0.0
    total = 0.0
    for exp in cv.experience:
        entry = 0.0
        if exp.role:
            entry += 0.2
        if exp.company:
            entry += 0.2
        if exp.description and len(exp.description) > 50:
            entry += 0.3
        if exp.start_date:
            entry += 0.15
        if exp.end_date or exp.current:
            entry += 0.15
        total += entry
    return total / len(cv.experience)


def skills_quality(cv: ParsedCV) -> float:
    """Up to ten skills for full marks, plus a bonus for a categorized layout."""
    skills = normalize_skills(cv.skills)
    if not skills:
        return 0.0
    score = min(len(skills) / 10, 1.0)
    if skills_are_categorized(cv.skills):
        score = min(score + 0.2, 1.0)
    return score


def quantified_achievement_ratio(cv: ParsedCV) -> float:
    texts = [exp.description for exp in cv.experience if exp.description]
    texts.extend(cv.achievements)
    if not texts:
        return 0.0
    quantified = sum(1 for text in texts if contains_quantifiable_metrics(text))
    return quantified / len(texts)


def data_completeness(cv: ParsedCV) -> float:
    checks = (
        bool(cv.personal_info.name),
        bool(cv.personal_info.email),
        bool(cv.experience),
        bool(cv.education),
        has_skills(cv),
    )
    return sum(1 for check in checks if check) / len(checks)


def data_consistency(cv: ParsedCV) -> float:
    score = 1.0
    for exp in cv.experience:
        if exp.start_date and exp.end_date and not exp.current:
            if _sortable_date(exp.start_date) > _sortable_date(exp.end_date):
                score -= 0.1

    emails = [
        email.strip().lower()
        for email in re.split(r"[,;\s]+", cv.personal_info.email or "")
        if email.strip()
    ]
    if len(set(emails)) != len(emails):
        score -= 0.1
    return max(0.0, score)


def _sortable_date(value: str) -> str:
    stripped = value.strip()
    fmt = date_format(stripped)
    if fmt == "MM/DD/YYYY":
        month, day, year = stripped.split("/")
        return f"{year}-{month}-{day}"
    if fmt == "YYYY/MM/DD":
        return stripped.replace("/", "-")
    if fmt == "MM/YYYY":
        month, year = stripped.split("/")
        return f"{year}-{month}"
    if fmt == "Mon YYYY":
        month_name, year = stripped.split()
        months = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]
        return f"{year}-{months.index(month_name[:3].lower()) + 1:02d}"
    return stripped
