"""Parsers for free-text responses from generative services.

Every function here is pure: it takes untrusted text and returns a typed value,
falling back to defaults when nothing usable is found.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from ats_engine.core.config.scoring import get_scoring_value

_BULLET_RE = re.compile(r"^(?:[-•*]+|\d+[.)])\s*")
_CONFIDENCE_RE = re.compile(
    r"(?:confidence|quality|rate).*?(\d+)(?:/10|\s*out of 10|\s*/\s*10)",
    re.IGNORECASE,
)
_SUGGESTED_SCORE_RE = re.compile(r"(?:score|overall).*?(\d{2,3})", re.IGNORECASE)
_MARKET_SCORE_RE = re.compile(r"(\d{2,3})")
_SENTENCE_RE = re.compile(r"[.!?]+")
_SUGGESTION_SPLIT_RE = re.compile(r"\s*(?::|\s-\s|\()\s*")

DIFFERENTIATOR_TERMS = ("differentiator", "strength", "advantage", "unique", "standout")
WEAKNESS_TERMS = ("weakness", "gap", "improvement", "lacking", "missing")
POSITIONING_TERMS = ("positioning", "market", "competitive", "benchmark", "comparison")

_CRITIQUE_TERMS = ("issue", "problem", "concern")
_IMPROVEMENT_TERMS = ("improve", "suggest", "recommend")


class Assessment(BaseModel):
    source: str
    confidence: int = Field(default=7, ge=0, le=10)
    suggested_score: int = Field(default=75, ge=0, le=999)
    critiques: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    summary: str = ""


class CompetitorReading(BaseModel):
    average_score: int
    differentiators: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    positioning: list[str] = Field(default_factory=list)


def _clean_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def _strip_bullet(line: str) -> str:
    return _BULLET_RE.sub("", line.strip()).strip()


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def parse_extracted_keywords(text: str, limit: int = 25) -> list[str]:
    """One keyword per line, bullets stripped, 3 to 49 characters long."""
    keywords = [_strip_bullet(line) for line in _clean_lines(text)]
    keywords = [keyword for keyword in keywords if 2 < len(keyword) < 50]
    return _unique(keywords)[:limit]


def parse_keyword_suggestions(text: str, exclude: Sequence[str] = (), limit: int = 10) -> list[str]:
    """Pull short suggested terms out of bullet lines, skipping ones already known."""
    excluded = {item.strip().lower() for item in exclude if item}
    suggestions: list[str] = []
    for line in _clean_lines(text):
        if not _BULLET_RE.match(line):
            continue
        head = _SUGGESTION_SPLIT_RE.split(_strip_bullet(line), maxsplit=1)[0]
        term = head.strip(" *\"'`").strip()
        if not (2 < len(term) < 40) or len(term.split()) > 4:
            continue
        if term.lower() in excluded:
            continue
        excluded.add(term.lower())
        suggestions.append(term)
        if len(suggestions) >= limit:
            break
    return suggestions


def extract_list_items(text: str, keywords: Sequence[str]) -> list[str]:
    """Sentences (10 to 149 chars) from lines mentioning any of ``keywords``."""
    lowered_keywords = [keyword.lower() for keyword in keywords]
    items: list[str] = []
    for raw in (text or "").splitlines():
        if not any(keyword in raw.lower() for keyword in lowered_keywords):
            continue
        for sentence in _SENTENCE_RE.split(_strip_bullet(raw)):
            sentence = sentence.strip()
            if 10 < len(sentence) < 150:
                items.append(sentence)
    return _unique(items)


def parse_market_average(text: str, default: int) -> int:
    floor = int(get_scoring_value("competitor.score_floor", 30))
    ceiling = int(get_scoring_value("competitor.score_ceiling", 100))
    for line in _clean_lines(text):
        match = _MARKET_SCORE_RE.search(line)
        if match is None:
            continue
        value = int(match.group(1))
        if floor <= value <= ceiling:
            return value
    return default


def parse_competitor_response(text: str, default_average: int) -> CompetitorReading:
    return CompetitorReading(
        average_score=parse_market_average(text, default_average),
        differentiators=extract_list_items(text, DIFFERENTIATOR_TERMS),
        weaknesses=extract_list_items(text, WEAKNESS_TERMS),
        positioning=extract_list_items(text, POSITIONING_TERMS),
    )


def parse_verification_response(text: str, source: str) -> Assessment:
    default_confidence = int(get_scoring_value("verification.default_confidence", 7))
    default_score = int(get_scoring_value("verification.default_suggested_score", 75))
    lines = _clean_lines(text)

    confidence = default_confidence
    match = _CONFIDENCE_RE.search(text or "")
    if match:
        confidence = max(0, min(10, int(match.group(1))))

    suggested = default_score
    match = _SUGGESTED_SCORE_RE.search(text or "")
    if match:
        suggested = int(match.group(1))

    critiques: list[str] = []
    improvements: list[str] = []
    for line in lines:
        lowered = line.lower()
        if any(term in lowered for term in _CRITIQUE_TERMS):
            critiques.append(line)
        elif any(term in lowered for term in _IMPROVEMENT_TERMS):
            improvements.append(line)

    return Assessment(
        source=source,
        confidence=confidence,
        suggested_score=suggested,
        critiques=critiques[:3],
        improvements=improvements[:3],
        summary=" ".join(lines[:3])[:200],
    )


def critique_similarity(first: Sequence[str], second: Sequence[str]) -> float:
    """Jaccard overlap of words longer than three characters."""
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    words_a = {word for word in " ".join(first).lower().split() if len(word) > 3}
    words_b = {word for word in " ".join(second).lower().split() if len(word) > 3}
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)
