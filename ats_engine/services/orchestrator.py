from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any, Literal, TypeVar

from pydantic import ValidationError

from ats_engine import __version__
from ats_engine.ai.factory import get_optional_ai_client
from ats_engine.ai.types import AIClient
from ats_engine.core.config import Settings, settings as default_settings
from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.keyword_extractor import normalize_target_keywords
from ats_engine.schemas.ats import (
    AdvancedATSScore,
    AnalysisResult,
    ATSIssue,
    ATSSuggestion,
    ATSSystemSimulation,
    ATSTemplate,
    CompetitorAnalysis,
    FormatAnalysis,
    ImpactLabel,
    KeywordSummary,
    OptimizedContent,
    PrioritizedRecommendation,
    ProcessingMetadata,
    SemanticKeywordAnalysis,
    VerificationResult,
)
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.basic_analysis import build_basic_analysis
from ats_engine.services.competitor_analysis import CompetitorAnalysisService
from ats_engine.services.content_optimization import ContentOptimizationService
from ats_engine.services.errors import AnalysisError, StageResult
from ats_engine.services.format_optimization import FormatOptimizationService
from ats_engine.services.keyword_analysis import KeywordAnalysisService
from ats_engine.services.recommendations import (
    RecommendationContext,
    RecommendationService,
    fallback_recommendations,
)
from ats_engine.services.scoring import ATSScoringService
from ats_engine.services.system_simulation import SystemSimulationService
from ats_engine.services.verification import VerificationService, fallback_verification

logger = logging.getLogger(__name__)

Stage = Literal["collecting", "scoring", "recommending", "verifying", "done", "failed"]
T = TypeVar("T")

Collected = tuple[SemanticKeywordAnalysis, list[ATSSystemSimulation], CompetitorAnalysis]


def impact_label(impact: int) -> ImpactLabel:
    thresholds = get_scoring_value("recommendations.impact_thresholds", {}) or {}
    if impact > int(thresholds.get("high", 80)):
        return "high"
    if impact > int(thresholds.get("medium", 60)):
        return "medium"
    return "low"


def collect_issues(
    simulations: Sequence[ATSSystemSimulation],
    recommendations: Sequence[PrioritizedRecommendation],
) -> list[ATSIssue]:
    by_issue: dict[str, list[str]] = {}
    for sim in simulations:
        for issue in sim.issues:
            systems = by_issue.setdefault(issue, [])
            if sim.system_name not in systems:
                systems.append(sim.system_name)

    issues = [
        ATSIssue(
            type="warning",
            description=issue,
            severity="high" if len(systems) > len(simulations) / 2 else "medium",
            location=", ".join(systems),
        )
        for issue, systems in by_issue.items()
    ]
    for rec in recommendations:
        if rec.priority not in ("critical", "high"):
            continue
        issues.append(
            ATSIssue(
                type="critical" if rec.priority == "critical" else "warning",
                description=rec.description,
                severity="critical" if rec.priority == "critical" else "warning",
                location=rec.section or "CV content",
            )
        )
    return issues


def collect_suggestions(recommendations: Sequence[PrioritizedRecommendation]) -> list[ATSSuggestion]:
    return [
        ATSSuggestion(
            category=rec.category or "general",
            suggestion=rec.title or rec.description,
            impact=impact_label(rec.impact),
            implementation=(
                rec.implementation[0]
                if rec.implementation
                else "Apply the recommended changes to improve ATS compatibility"
            ),
        )
        for rec in recommendations
    ]


def summarize_keywords(analysis: SemanticKeywordAnalysis) -> KeywordSummary:
    return KeywordSummary(
        found=[match.keyword for match in analysis.primary_keywords],
        missing=list(analysis.missing_keywords),
        recommended=list(analysis.trending_keywords),
        density=analysis.keyword_density,
    )


class ATSOptimizationOrchestrator:
    """Runs the collecting, scoring, recommending and verifying stages for one request.

    Each stage reports an explicit StageResult; this class decides what a failed
    stage falls back to. Collecting or scoring failures degrade the whole result
    to the local basic analysis.
    """

    def __init__(
        self,
        *,
        primary_client: AIClient | None = None,
        secondary_client: AIClient | None = None,
        keyword_service: KeywordAnalysisService | None = None,
        simulation_service: SystemSimulationService | None = None,
        competitor_service: CompetitorAnalysisService | None = None,
        scoring_service: ATSScoringService | None = None,
        recommendation_service: RecommendationService | None = None,
        verification_service: VerificationService | None = None,
        format_service: FormatOptimizationService | None = None,
        content_service: ContentOptimizationService | None = None,
        cfg: Settings | None = None,
    ):
        resolved = cfg or default_settings
        self._keywords = keyword_service or KeywordAnalysisService(primary_client, cfg=resolved)
        self._simulation = simulation_service or SystemSimulationService()
        self._competitor = competitor_service or CompetitorAnalysisService(primary_client, cfg=resolved)
        self._scoring = scoring_service or ATSScoringService()
        self._recommendations = recommendation_service or RecommendationService()
        self._verification = verification_service or VerificationService(
            primary_client, secondary_client, cfg=resolved
        )
        self._format = format_service or FormatOptimizationService()
        self._content = content_service or ContentOptimizationService()
        self.stage: Stage = "collecting"

    async def analyze(
        self,
        cv: ParsedCV,
        target_role: str | None = None,
        target_keywords: Sequence[str] | None = None,
        job_description: str | None = None,
        industry: str | None = None,
    ) -> AnalysisResult:
        started = time.perf_counter()
        stages: list[str] = []
        keywords = normalize_target_keywords(target_keywords)

        try:
            self._enter("collecting", stages)
            if not keywords and job_description:
                keywords = normalize_target_keywords(
                    await self._keywords.generate_keywords(job_description, industry, target_role)
                )
            collected = await self._collect(cv, target_role, keywords, job_description, industry)
            semantic, simulations, competitor = self._require(collected)

            self._enter("scoring", stages)
            scored = self._run_stage(
                "scoring",
                lambda: self._scoring.calculate_advanced_score(cv, semantic, simulations, competitor),
            )
            advanced = self._require(scored)

            self._enter("recommending", stages)
            context = RecommendationContext(
                cv=cv,
                score=advanced,
                semantic=semantic,
                simulations=simulations,
                competitor=competitor,
                industry=industry,
            )
            recommended = self._run_stage(
                "recommending",
                lambda: self._recommendations.generate_prioritized_recommendations(context),
            )
            recommendations = recommended.value if recommended.ok else fallback_recommendations()
            advanced = advanced.model_copy(update={"recommendations": recommendations})

            self._enter("verifying", stages)
            verified = await self._run_async_stage(
                "verifying",
                self._verification.verify_results(advanced, recommendations, cv),
            )
            verification = verified.value if verified.ok else fallback_verification()

            self._enter("done", stages)
            return self._assemble(
                advanced,
                semantic,
                simulations,
                competitor,
                recommendations,
                verification,
                started=started,
                stages=stages,
            )
        except AnalysisError as exc:
            logger.warning("ats_analysis_degraded stage=%s code=%s: %s", self.stage, exc.code, exc)
        except Exception:
            logger.exception("ats_analysis_failed stage=%s", self.stage)

        self._enter("failed", stages)
        return build_basic_analysis(
            cv,
            keywords,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            stages=stages,
        )

    async def generate_keywords(
        self,
        job_description: str,
        industry: str | None = None,
        role: str | None = None,
    ) -> list[str]:
        return await self._keywords.generate_keywords(job_description, industry, role)

    def get_ats_templates(self, industry: str | None = None, role: str | None = None) -> list[ATSTemplate]:
        return self._format.get_ats_templates(industry, role)

    def analyze_format_compatibility(self, cv: ParsedCV) -> FormatAnalysis:
        return self._format.analyze_format_compatibility(cv)

    def apply_optimizations(
        self,
        cv: ParsedCV,
        recommendations: Sequence[PrioritizedRecommendation],
    ) -> OptimizedContent:
        return self._content.generate_optimized_content(cv, recommendations)

    def _enter(self, stage: Stage, stages: list[str]) -> None:
        self.stage = stage
        stages.append(stage)
        logger.debug("ats_analysis_stage stage=%s", stage)

    @staticmethod
    def _require(result: StageResult[T]) -> T:
        if not result.ok:
            raise result.error or AnalysisError(f"{result.stage} produced no value", code="empty_stage")
        return result.value  # type: ignore[return-value]

    @staticmethod
    def _run_stage(stage: str, fn: Callable[[], T]) -> StageResult[T]:
        try:
            return StageResult.success(stage, fn())
        except Exception as exc:  # noqa: BLE001 - converted into an explicit stage failure
            logger.warning("ats_stage_failed stage=%s: %s", stage, exc)
            return StageResult.failure(stage, exc)

    @staticmethod
    async def _run_async_stage(stage: str, awaitable: Any) -> StageResult[Any]:
        try:
            return StageResult.success(stage, await awaitable)
        except Exception as exc:  # noqa: BLE001 - converted into an explicit stage failure
            logger.warning("ats_stage_failed stage=%s: %s", stage, exc)
            return StageResult.failure(stage, exc)

    async def _collect(
        self,
        cv: ParsedCV,
        target_role: str | None,
        target_keywords: list[str],
        job_description: str | None,
        industry: str | None,
    ) -> StageResult[Collected]:
        outcomes = await asyncio.gather(
            self._keywords.perform_semantic_keyword_analysis(cv, job_description, target_keywords, industry),
            self._simulation.simulate_ats_systems(cv),
            self._competitor.perform_competitor_analysis(cv, target_role, industry),
            return_exceptions=True,
        )
        for name, outcome in zip(("keywords", "simulation", "competitor"), outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("ats_collect_failed part=%s: %s", name, outcome)
                return StageResult.failure("collecting", outcome, code=f"{name}_failed")

        semantic, simulations, competitor = outcomes
        return StageResult.success("collecting", (semantic, list(simulations), competitor))

    def _assemble(
        self,
        advanced: AdvancedATSScore,
        semantic: SemanticKeywordAnalysis,
        simulations: list[ATSSystemSimulation],
        competitor: CompetitorAnalysis,
        recommendations: list[PrioritizedRecommendation],
        verification: VerificationResult,
        *,
        started: float,
        stages: list[str],
    ) -> AnalysisResult:
        threshold = int(get_scoring_value("scoring.pass_threshold", 75))
        return AnalysisResult(
            overall=advanced.overall,
            passes=advanced.overall >= threshold,
            breakdown=advanced.breakdown,
            recommendations=recommendations,
            issues=collect_issues(simulations, recommendations),
            suggestions=collect_suggestions(recommendations),
            keywords=summarize_keywords(semantic),
            verification=verification,
            metadata=ProcessingMetadata(
                timestamp=datetime.now(timezone.utc).isoformat(),
                version=__version__,
                confidence=advanced.confidence,
                degraded=False,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
                stages=list(stages),
            ),
            advanced_score=advanced,
            semantic_analysis=semantic,
            system_simulations=simulations,
            competitor_benchmark=competitor,
        )


def build_orchestrator(cfg: Settings | None = None, *, offline: bool = False) -> ATSOptimizationOrchestrator:
    """Per-request orchestrator wired to whichever generative services are configured."""
    resolved = cfg or default_settings
    primary = None if offline else get_optional_ai_client("primary", resolved)
    secondary = None if offline else get_optional_ai_client("secondary", resolved)
    logger.info(
        "ats_orchestrator_built primary=%s secondary=%s",
        primary.name if primary else "none",
        secondary.name if secondary else "none",
    )
    return ATSOptimizationOrchestrator(primary_client=primary, secondary_client=secondary, cfg=resolved)


async def analyze_cv(
    cv: ParsedCV | dict[str, Any],
    target_role: str | None = None,
    target_keywords: Sequence[str] | None = None,
    job_description: str | None = None,
    industry: str | None = None,
    *,
    cfg: Settings | None = None,
    offline: bool = False,
) -> AnalysisResult:
    if isinstance(cv, ParsedCV):
        parsed = cv
    else:
        try:
            parsed = ParsedCV.model_validate(cv)
        except ValidationError as exc:
            logger.warning("ats_cv_invalid errors=%s: %s", exc.error_count(), exc)
            parsed = ParsedCV()
    orchestrator = build_orchestrator(cfg, offline=offline)
    return await orchestrator.analyze(parsed, target_role, target_keywords, job_description, industry)
