from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

DocumentFormat = Literal["pdf", "docx", "text"]

_SKILL_SPLIT_RE = re.compile(r"[,;|\n]")
_TRUE_FLAGS = frozenset({"true", "yes", "y", "1", "present", "current"})


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return str(value.get("name") or value.get("skill") or value.get("description") or "").strip()
    return str(value).strip()


def _coerce_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        items = [_coerce_text(item) for item in value]
        return [item for item in items if item]
    text = _coerce_text(value)
    return [text] if text else []


def _coerce_optional_text(value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    text = str(value).strip()
    return text or None


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_FLAGS
    return False


def _valid_entries(model: type[BaseModel], value: Any) -> list[Any]:
    """Validate list entries one by one, dropping the ones that cannot be read."""
    if not isinstance(value, (list, tuple)):
        return []
    entries: list[Any] = []
    for item in value:
        if isinstance(item, model):
            entries.append(item)
            continue
        if not isinstance(item, dict):
            continue
        try:
            entries.append(model.model_validate(item))
        except ValidationError:
            continue
    return entries


class PersonalInfo(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    summary: str | None = None

    @field_validator("name", "email", "phone", "location", "linkedin", "summary", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)


class ExperienceEntry(BaseModel):
    role: str | None = None
    company: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    current: bool = False
    description: str | None = None
    achievements: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)

    @field_validator("role", "company", "start_date", "end_date", "description", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)

    @field_validator("current", mode="before")
    @classmethod
    def _coerce_current(cls, value: Any) -> bool:
        return _coerce_flag(value)

    @field_validator("achievements", "technologies", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return _coerce_text_list(value)


class EducationEntry(BaseModel):
    degree: str | None = None
    institution: str | None = None
    field: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    gpa: str | None = None
    honors: str | None = None
    coursework: list[str] = Field(default_factory=list)

    @field_validator("degree", "institution", "field", "start_date", "end_date", "gpa", "honors", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)

    @field_validator("coursework", mode="before")
    @classmethod
    def _coerce_coursework(cls, value: Any) -> list[str]:
        return _coerce_text_list(value)


class FlatSkills(BaseModel):
    kind: Literal["flat"] = "flat"
    items: list[str] = Field(default_factory=list)


class CategorizedSkills(BaseModel):
    kind: Literal["categorized"] = "categorized"
    categories: dict[str, list[str]] = Field(default_factory=dict)


Skills = Annotated[Union[FlatSkills, CategorizedSkills], Field(discriminator="kind")]


def wrap_raw_skills(value: Any) -> Any:
    """Turn the raw skill shapes emitted by upstream parsers into a tagged union payload."""
    if value is None or isinstance(value, (FlatSkills, CategorizedSkills)):
        return value
    if isinstance(value, dict) and value.get("kind") == "flat":
        value = value.get("items") or []
    elif isinstance(value, dict) and value.get("kind") == "categorized":
        raw = value.get("categories")
        value = raw if isinstance(raw, dict) else {}
        if not value:
            return {"kind": "categorized", "categories": {}}
    if isinstance(value, str):
        items = [part.strip() for part in _SKILL_SPLIT_RE.split(value) if part.strip()]
        return {"kind": "flat", "items": items}
    if isinstance(value, (list, tuple, set)):
        return {"kind": "flat", "items": _coerce_text_list(value)}
    if isinstance(value, dict):
        categories = {str(key): _coerce_text_list(items) for key, items in value.items()}
        return {"kind": "categorized", "categories": categories}
    return None


class ParsedCV(BaseModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: Skills | None = None
    certifications: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    document_format: DocumentFormat | None = None

    @field_validator("skills", mode="before")
    @classmethod
    def _wrap_skills(cls, value: Any) -> Any:
        return wrap_raw_skills(value)

    @field_validator("certifications", "projects", "achievements", "languages", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return _coerce_text_list(value)

    @field_validator("experience", mode="before")
    @classmethod
    def _valid_experience(cls, value: Any) -> list[Any]:
        return _valid_entries(ExperienceEntry, value)

    @field_validator("education", mode="before")
    @classmethod
    def _valid_education(cls, value: Any) -> list[Any]:
        return _valid_entries(EducationEntry, value)

    @field_validator("personal_info", mode="before")
    @classmethod
    def _default_personal_info(cls, value: Any) -> Any:
        valid = _valid_entries(PersonalInfo, [value])
        return valid[0] if valid else PersonalInfo()

    @field_validator("document_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> str | None:
        if not value:
            return None
        lowered = str(value).strip().lower().lstrip(".")
        if lowered in {"txt", "text", "plain"}:
            return "text"
        if lowered in {"doc", "docx", "word"}:
            return "docx"
        if lowered == "pdf":
            return "pdf"
        return None
