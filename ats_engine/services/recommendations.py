from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import (
    contains_action_verbs,
    contains_quantifiable_metrics,
    has_consistent_date_formats,
    has_skills,
    normalize_skills,
    skills_are_categorized,
)
from ats_engine.features.keyword_recommendations import KeywordRecommendationEngine
from ats_engine.schemas.ats import (
    AdvancedATSScore,
    ATSSystemSimulation,
    CompetitorAnalysis,
    PrioritizedRecommendation,
    SemanticKeywordAnalysis,
)
from ats_engine.schemas.cv import ParsedCV

logger = logging.getLogger(__name__)

ALL_SYSTEMS = ["workday", "greenhouse", "lever", "smartrecruiters", "bamboohr", "icims", "taleo"]


@dataclass(frozen=True)
class RecommendationContext:
    cv: ParsedCV
    score: AdvancedATSScore
    semantic: SemanticKeywordAnalysis
    simulations: Sequence[ATSSystemSimulation]
    competitor: CompetitorAnalysis | None
    industry: str | None = None


Generator = Callable[[RecommendationContext], list[PrioritizedRecommendation]]


def fallback_recommendations() -> list[PrioritizedRecommendation]:
    return [
        PrioritizedRecommendation(
            id="fallback-structure",
            category="structure",
            priority="medium",
            title="Improve CV Structure",
            description="Review and enhance the overall structure and organization of your CV",
            impact=70,
            effort="medium",
            time_estimate="2-4 hours",
            implementation=["Review CV structure", "Reorganize sections logically", "Ensure ATS-friendly formatting"],
            estimated_score_improvement=10,
            action_required="modify",
            section="structure",
            ats_systems_affected=["workday", "greenhouse", "lever"],
        ),
        PrioritizedRecommendation(
            id="fallback-content",
            category="content",
            priority="medium",
            title="Enhance Content Quality",
            description="Add more specific achievements and quantified results to your experience descriptions",
            impact=85,
            effort="high",
            time_estimate="4-6 hours",
            implementation=["Review experience descriptions", "Add quantified achievements", "Use action verbs and metrics"],
            estimated_score_improvement=15,
            action_required="modify",
            section="experience",
            ats_systems_affected=["greenhouse", "icims"],
        ),
        PrioritizedRecommendation(
            id="fallback-keywords",
            category="keywords",
            priority="low",
            title="Optimize Keywords",
            description="Include more relevant industry keywords throughout your CV",
            impact=65,
            effort="medium",
            time_estimate="1-2 hours",
            implementation=["Research industry keywords", "Integrate keywords naturally", "Optimize keyword density"],
            estimated_score_improvement=8,
            action_required="modify",
            section="content",
            ats_systems_affected=["workday", "bamboohr"],
        ),
    ]


def keyword_recommendations(ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
    engine = KeywordRecommendationEngine()
    semantic = ctx.semantic
    recs: list[PrioritizedRecommendation] = []

    if semantic.missing_keywords:
        critical = semantic.missing_keywords[:5]
        hints = engine.generate_contextual_suggestions(semantic.primary_keywords, critical, ctx.industry)
        strategy = engine.assess_keyword_strategy(
            semantic.primary_keywords,
            semantic.missing_keywords,
            semantic.keyword_density,
            semantic.optimal_density,
        )
        recs.append(
            PrioritizedRecommendation(
                id="keywords-missing",
                category="keywords",
                priority="critical" if strategy.priority == "high" and strategy.score < 40 else "high",
                title="Missing Critical Keywords",
                description=(
                    f"Missing {len(critical)} critical keywords: {', '.join(critical)}. Integrate these keywords "
                    "naturally into your experience descriptions and skills section"
                ),
                impact=85,
                effort="medium",
                time_estimate="2-3 hours",
                implementation=hints.integration or ["Integrate keywords naturally"],
                estimated_score_improvement=15,
                action_required="add",
                section="skills",
                keywords=critical,
                ats_systems_affected=["workday", "greenhouse", "lever", "taleo"],
            )
        )

    density = semantic.keyword_density
    optimal = semantic.optimal_density
    if density < optimal * 0.7:
        recs.append(
            PrioritizedRecommendation(
                id="keywords-density-low",
                category="keywords",
                priority="medium",
                title="Keyword Density Too Low",
                description=(
                    f"Keyword density too low ({density * 100:.1f}% vs optimal {optimal * 100:.1f}%). Increase "
                    "keyword frequency by naturally incorporating relevant terms throughout your CV"
                ),
                impact=85,
                estimated_score_improvement=10,
                action_required="modify",
                section="content",
                ats_systems_affected=["greenhouse", "lever", "icims"],
            )
        )
    elif density > optimal * 1.3:
        recs.append(
            PrioritizedRecommendation(
                id="keywords-density-high",
                category="keywords",
                priority="low",
                title="Keyword Density Too High",
                description=(
                    f"Keyword density too high ({density * 100:.1f}% vs optimal {optimal * 100:.1f}%). Reduce "
                    "keyword repetition to avoid appearing as keyword stuffing"
                ),
                impact=65,
                estimated_score_improvement=8,
                action_required="modify",
                section="content",
                ats_systems_affected=["workday", "bamboohr"],
            )
        )

    low_frequency = [match for match in semantic.primary_keywords if match.frequency == 1]
    if len(low_frequency) > 3:
        hints = engine.generate_contextual_suggestions(low_frequency, [], ctx.industry)
        recs.append(
            PrioritizedRecommendation(
                id="keywords-frequency",
                category="keywords",
                priority="low",
                title="Low Keyword Frequency",
                description=(
                    f"{len(low_frequency)} important keywords appear only once. Increase frequency of critical "
                    "keywords by using them in multiple relevant contexts"
                ),
                impact=65,
                estimated_score_improvement=6,
                action_required="modify",
                section="content",
                keywords=[match.keyword for match in low_frequency],
                implementation=hints.placement or ["Apply recommended changes"],
                ats_systems_affected=["greenhouse", "icims"],
            )
        )
    return recs


def structure_recommendations(ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
    cv = ctx.cv
    info = cv.personal_info
    recs: list[PrioritizedRecommendation] = []

    missing = [
        name
        for name, present in (
            ("name", bool(info.name)),
            ("email", bool(info.email)),
            ("phone", bool(info.phone)),
            ("experience", bool(cv.experience)),
            ("education", bool(cv.education)),
            ("skills", has_skills(cv)),
        )
        if not present
    ]
    if missing:
        blocking = {"name", "email", "experience"} & set(missing)
        recs.append(
            PrioritizedRecommendation(
                id="structure-missing-sections",
                category="structure",
                priority="critical" if blocking else "high",
                title="Missing Essential Sections",
                description=(
                    f"Missing essential sections: {', '.join(missing)}. Add all missing essential sections to "
                    "ensure ATS can parse your information"
                ),
                impact=85,
                estimated_score_improvement=25,
                action_required="add",
                section="structure",
                ats_systems_affected=list(ALL_SYSTEMS),
            )
        )

    if not info.summary:
        recs.append(
            PrioritizedRecommendation(
                id="structure-summary",
                category="structure",
                priority="medium",
                title="Missing Professional Summary",
                description=(
                    "Missing professional summary section. Add a compelling 2-3 sentence professional summary "
                    "at the top of your CV"
                ),
                impact=85,
                estimated_score_improvement=12,
                action_required="add",
                section="summary",
                ats_systems_affected=["workday", "smartrecruiters"],
            )
        )

    if not has_consistent_date_formats(cv):
        recs.append(
            PrioritizedRecommendation(
                id="structure-dates",
                category="structure",
                priority="low",
                title="Inconsistent Date Formatting",
                description=(
                    "Inconsistent date formatting across sections. Standardize all dates to MM/YYYY format for "
                    "better ATS parsing"
                ),
                impact=65,
                estimated_score_improvement=5,
                action_required="modify",
                section="formatting",
                ats_systems_affected=["workday", "smartrecruiters", "bamboohr"],
            )
        )
    return recs


def _skills_depth(cv: ParsedCV) -> float:
    skills = normalize_skills(cv.skills)
    if not skills:
        return 0.0
    depth = min(len(skills) / 10, 0.7)
    if skills_are_categorized(cv.skills):
        depth += 0.3
    return min(depth, 1.0)


def content_recommendations(ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
    cv = ctx.cv
    recs: list[PrioritizedRecommendation] = []

    weak = [
        exp
        for exp in cv.experience
        if not exp.description or len(exp.description) < 50 or not contains_action_verbs(exp.description)
    ]
    if weak:
        recs.append(
            PrioritizedRecommendation(
                id="content-experience",
                category="content",
                priority="medium",
                title="Weak Experience Descriptions",
                description=(
                    f"{len(weak)} experience entries lack detailed descriptions. Enhance experience descriptions "
                    "with specific achievements, responsibilities, and quantified results"
                ),
                impact=85,
                estimated_score_improvement=15,
                action_required="modify",
                section="experience",
                ats_systems_affected=["greenhouse", "icims", "lever"],
            )
        )

    if cv.experience and not any(
        exp.description and contains_quantifiable_metrics(exp.description) for exp in cv.experience
    ):
        recs.append(
            PrioritizedRecommendation(
                id="content-achievements",
                category="content",
                priority="medium",
                title="Lacks Quantified Achievements",
                description=(
                    "Experience lacks quantified achievements and measurable results. Add specific numbers, "
                    "percentages, and metrics to demonstrate your impact"
                ),
                impact=85,
                estimated_score_improvement=20,
                action_required="modify",
                section="experience",
                ats_systems_affected=["icims", "greenhouse", "lever"],
            )
        )

    if _skills_depth(cv) < 0.7:
        recs.append(
            PrioritizedRecommendation(
                id="content-skills",
                category="content",
                priority="low",
                title="Skills Section Lacks Depth",
                description=(
                    "Skills section lacks depth and organization. Expand and categorize skills by type "
                    "(Technical, Soft Skills, Tools, etc.)"
                ),
                impact=65,
                estimated_score_improvement=8,
                action_required="modify",
                section="skills",
                ats_systems_affected=["greenhouse", "icims"],
            )
        )
    return recs


def system_recommendations(ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
    threshold = float(get_scoring_value("simulation.weak_pass_rate", 75))
    weak = [sim for sim in ctx.simulations if sim.confidence > 0 and sim.pass_rate < threshold]
    if not weak:
        return []

    names = [sim.system_name for sim in weak]
    steps: list[str] = []
    for sim in weak:
        for tip in sim.suggestions[:2]:
            if tip not in steps:
                steps.append(tip)
    return [
        PrioritizedRecommendation(
            id="ats-compatibility",
            category="ats-compatibility",
            priority="high" if len(weak) > len(ctx.simulations) / 2 else "medium",
            title="Low ATS Compatibility",
            description=(
                f"Low compatibility with {len(names)} ATS systems: {', '.join(names)}. Address common parsing "
                "issues to improve compatibility across multiple ATS platforms"
            ),
            impact=85,
            estimated_score_improvement=18,
            action_required="modify",
            section="formatting",
            ats_systems_affected=names,
            implementation=steps[:5] or ["Apply recommended changes"],
        )
    ]


def competitive_recommendations(ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
    competitor = ctx.competitor
    if competitor is None:
        return []

    recs: list[PrioritizedRecommendation] = []
    current = ctx.score.overall
    average = competitor.benchmark_score or 75
    if current < average - 5:
        recs.append(
            PrioritizedRecommendation(
                id="competitive-score",
                category="competitive",
                priority="medium",
                title="Below Industry Average",
                description=(
                    f"CV scores {current} vs industry average of {average}. Implement targeted improvements to "
                    "exceed industry benchmarks"
                ),
                impact=85,
                estimated_score_improvement=22,
                action_required="modify",
                section="content",
                ats_systems_affected=list(ALL_SYSTEMS),
                implementation=competitor.improvement_opportunities[:3] or ["Apply recommended changes"],
            )
        )

    if len(competitor.competitive_advantage) < 3:
        recs.append(
            PrioritizedRecommendation(
                id="competitive-differentiators",
                category="competitive",
                priority="low",
                title="Lacks Differentiators",
                description=(
                    "CV lacks clear differentiators from other candidates. Highlight unique achievements and "
                    "specialized skills that set you apart"
                ),
                impact=85,
                estimated_score_improvement=12,
                action_required="modify",
                section="content",
                ats_systems_affected=["lever", "greenhouse"],
            )
        )
    return recs


GENERATORS: tuple[tuple[str, Generator], ...] = (
    ("keywords", keyword_recommendations),
    ("structure", structure_recommendations),
    ("content", content_recommendations),
    ("system", system_recommendations),
    ("competitive", competitive_recommendations),
)


def rank_value(rec: PrioritizedRecommendation) -> int:
    priority_weights = get_scoring_value("recommendations.priority_weights", {}) or {}
    impact_weights = get_scoring_value("recommendations.impact_weights", {}) or {}
    thresholds = get_scoring_value("recommendations.impact_thresholds", {}) or {}

    if rec.impact > int(thresholds.get("high", 80)):
        bucket = int(impact_weights.get("high", 30))
    elif rec.impact > int(thresholds.get("medium", 60)):
        bucket = int(impact_weights.get("medium", 20))
    else:
        bucket = int(impact_weights.get("low", 10))
    return int(priority_weights.get(rec.priority, 50)) + bucket + rec.estimated_score_improvement


def prioritize(recommendations: Sequence[PrioritizedRecommendation]) -> list[PrioritizedRecommendation]:
    """Drop duplicate ids, order by rank (ties keep generation order) and cap the list."""
    limit = int(get_scoring_value("recommendations.max_results", 15))
    unique: dict[str, PrioritizedRecommendation] = {}
    for rec in recommendations:
        unique.setdefault(rec.id, rec)
    ranked = sorted(unique.values(), key=rank_value, reverse=True)
    return ranked[:limit]


class RecommendationService:
    def __init__(self, generators: Sequence[tuple[str, Generator]] = GENERATORS):
        self._generators = tuple(generators)

    def generate_prioritized_recommendations(self, ctx: RecommendationContext) -> list[PrioritizedRecommendation]:
        collected: list[PrioritizedRecommendation] = []
        failures = 0
        for name, generator in self._generators:
            try:
                collected.extend(generator(ctx))
            except Exception as exc:  # noqa: BLE001 - a broken generator only drops its own items
                failures += 1
                logger.warning("recommendation_generator_failed generator=%s: %s", name, exc)

        if self._generators and failures == len(self._generators):
            logger.warning("recommendation_generators_all_failed count=%s", failures)
            return fallback_recommendations()
        return prioritize(collected)
