from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ats_engine.ai.types import AIClient, CompletionRequest
from ats_engine.core.config import Settings, settings as default_settings
from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import cv_to_text, normalize_skills, quantified_achievement_ratio
from ats_engine.features.keyword_extractor import industry_key
from ats_engine.schemas.ats import CompetitorAnalysis
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.ats_llm import generate_text
from ats_engine.services.interpreters import parse_competitor_response

logger = logging.getLogger(__name__)

_SYSTEM = (
    "You are a competitive intelligence expert specializing in CV analysis and market positioning. "
    "Provide detailed competitive analysis that helps candidates understand their position relative "
    "to market competitors."
)

_BASE_IMPROVEMENTS = (
    "Add more quantified achievements to demonstrate impact",
    "Include industry-specific keywords and terminology",
    "Enhance technical skills section with current technologies",
)

_INDUSTRY_IMPROVEMENTS = {
    "technology": (
        "Highlight experience with modern frameworks and cloud technologies",
        "Include metrics on system performance and code quality",
    ),
    "finance": (
        "Emphasize compliance experience and regulatory knowledge",
        "Quantify risk reduction and portfolio performance achievements",
    ),
    "healthcare": (
        "Highlight patient care improvements and safety metrics",
        "Include relevant certifications and continuing education",
    ),
    "marketing": (
        "Quantify campaign performance and ROI metrics",
        "Showcase digital marketing and analytics expertise",
    ),
    "sales": (
        "Highlight quota achievements and revenue growth",
        "Include CRM experience and client relationship metrics",
    ),
}


@dataclass(frozen=True)
class IndustryBenchmark:
    average_ats_score: int
    top_percentile_score: int
    similar_profiles: int
    market_positioning: str
    common_skills: tuple[str, ...]
    key_metrics: tuple[str, ...]


def get_industry_benchmark(industry: str | None = None) -> IndustryBenchmark:
    key = industry_key(industry) or "default"
    raw = get_scoring_value(f"industries.{key}", None)
    if not isinstance(raw, dict):
        raw = get_scoring_value("industries.default", {}) or {}
    return IndustryBenchmark(
        average_ats_score=int(raw.get("average_ats_score", 75)),
        top_percentile_score=int(raw.get("top_percentile_score", 90)),
        similar_profiles=int(raw.get("similar_profiles", 100)),
        market_positioning=str(raw.get("market_positioning", "Competitive professional with industry alignment")),
        common_skills=tuple(str(skill) for skill in raw.get("common_skills", []) or []),
        key_metrics=tuple(str(metric) for metric in raw.get("key_metrics", []) or []),
    )


def benchmark_score(average: int) -> int:
    uplift = int(get_scoring_value("competitor.benchmark_uplift", 5))
    ceiling = int(get_scoring_value("competitor.score_ceiling", 100))
    return max(0, min(ceiling, average + uplift))


def identify_competitive_advantages(differentiators: Sequence[str]) -> list[str]:
    advantages: list[str] = []
    for diff in differentiators:
        lowered = diff.lower()
        if "experience" in lowered:
            advantage = "Strong professional experience"
        elif "skill" in lowered:
            advantage = "Comprehensive skill set"
        elif "education" in lowered:
            advantage = "Solid educational background"
        elif "achievement" in lowered:
            advantage = "Proven track record of success"
        else:
            advantage = diff
        if advantage not in advantages:
            advantages.append(advantage)
    return advantages[:4]


def generate_competitive_improvements(weaknesses: Sequence[str], industry: str | None = None) -> list[str]:
    improvements = list(_BASE_IMPROVEMENTS)
    improvements.extend(_INDUSTRY_IMPROVEMENTS.get(industry_key(industry) or "", ()))

    for weakness in weaknesses:
        lowered = weakness.lower()
        if "keyword" in lowered:
            improvements.append("Integrate more relevant industry keywords naturally")
        elif "quantif" in lowered:
            improvements.append("Add specific numbers, percentages, and measurable outcomes")
        elif "skill" in lowered:
            improvements.append("Expand skills section with trending technologies")

    unique: list[str] = []
    for item in improvements:
        if item not in unique:
            unique.append(item)
    return unique[:8]


def keyword_gaps(cv: ParsedCV, bench: IndustryBenchmark) -> list[str]:
    text = cv_to_text(cv).lower()
    return [skill for skill in bench.common_skills if skill.lower() not in text]


def local_differentiators(cv: ParsedCV) -> list[str]:
    """Strengths readable straight off the CV, used when no generative reading is available."""
    found: list[str] = []
    if cv.experience:
        found.append(f"Professional experience across {len(cv.experience)} roles")
    skills = normalize_skills(cv.skills)
    if skills:
        found.append(f"Skill set covering {len(skills)} skills")
    if cv.education:
        found.append("Formal education credentials")
    if quantified_achievement_ratio(cv) > 0:
        found.append("Quantified achievement record")
    return found


def _build_prompt(cv_text: str, target_role: str | None, industry: str | None) -> str:
    lines = [
        "Analyze this CV against typical competitor profiles in the market:",
        "",
        "CV Content:",
        cv_text[:2000],
        "",
    ]
    if target_role:
        lines.append(f"Target Role: {target_role}")
    if industry:
        lines.append(f"Industry: {industry}")
    lines.extend(
        [
            "",
            "Provide competitor analysis including:",
            "1. Average ATS score range for similar profiles",
            "2. Key differentiators that set this CV apart",
            "3. Common weaknesses compared to competitors",
            "4. Market positioning strengths",
            "5. Recommended improvements to gain competitive advantage",
        ]
    )
    return "\n".join(lines)


class CompetitorAnalysisService:
    def __init__(self, client: AIClient | None = None, *, cfg: Settings | None = None):
        self._client = client
        self._cfg = cfg or default_settings

    async def perform_competitor_analysis(
        self,
        cv: ParsedCV,
        target_role: str | None = None,
        industry: str | None = None,
    ) -> CompetitorAnalysis:
        bench = get_industry_benchmark(industry)
        request = CompletionRequest(
            prompt=_build_prompt(cv_to_text(cv), target_role, industry),
            system=_SYSTEM,
            max_tokens=2000,
            temperature=self._cfg.llm_temperature,
        )
        text = await generate_text(self._client, request, timeout_s=self._cfg.llm_timeout_s, label="competitor_analysis")
        if text is None:
            return self.fallback_analysis(cv, industry)

        reading = parse_competitor_response(text, default_average=bench.average_ats_score)
        differentiators = reading.differentiators or local_differentiators(cv)
        return CompetitorAnalysis(
            similar_profiles=bench.similar_profiles,
            keyword_gaps=keyword_gaps(cv, bench),
            strengths_vs_competitors=differentiators[:5],
            improvement_opportunities=generate_competitive_improvements(reading.weaknesses, industry),
            market_positioning=reading.positioning[0] if reading.positioning else bench.market_positioning,
            competitive_advantage=identify_competitive_advantages(differentiators),
            benchmark_score=benchmark_score(reading.average_score),
        )

    def fallback_analysis(self, cv: ParsedCV, industry: str | None = None) -> CompetitorAnalysis:
        bench = get_industry_benchmark(industry)
        differentiators = local_differentiators(cv)
        gaps = keyword_gaps(cv, bench)
        weaknesses = ["Missing industry skill keywords"] if gaps else []
        if quantified_achievement_ratio(cv) < 0.5:
            weaknesses.append("Achievements lack quantification")
        return CompetitorAnalysis(
            similar_profiles=bench.similar_profiles,
            keyword_gaps=gaps,
            strengths_vs_competitors=differentiators,
            improvement_opportunities=generate_competitive_improvements(weaknesses, industry),
            market_positioning=bench.market_positioning,
            competitive_advantage=identify_competitive_advantages(differentiators),
            benchmark_score=benchmark_score(bench.average_ats_score),
        )
