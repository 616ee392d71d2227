from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ats_engine.ai.types import AIClient, CompletionRequest
from ats_engine.core.config import Settings, settings as default_settings
from ats_engine.core.config.scoring import get_scoring_value
from ats_engine.features.cv_text import cv_to_text
from ats_engine.schemas.ats import (
    AdvancedATSScore,
    LLMComparison,
    PrioritizedRecommendation,
    VerificationConsensus,
    VerificationResult,
)
from ats_engine.schemas.cv import ParsedCV
from ats_engine.services.ats_llm import generate_text
from ats_engine.services.interpreters import Assessment, critique_similarity, parse_verification_response

logger = logging.getLogger(__name__)

UNAVAILABLE_ASSESSMENT = "Verification unavailable - using fallback assessment"

_SYSTEM = (
    "You are an expert ATS analyst reviewing optimization results for accuracy. "
    "Provide detailed, objective feedback on the analysis quality."
)


def _threshold(name: str, default: float) -> float:
    return float(get_scoring_value(f"verification.{name}", default))


def cap_adjustment(adjustment: int) -> int:
    """Large corrections are treated as noise rather than applied."""
    limit = int(_threshold("max_score_adjustment", 15))
    return 0 if abs(adjustment) > limit else adjustment


def fallback_verification() -> VerificationResult:
    confidence = int(_threshold("fallback_confidence", 75))
    return VerificationResult(
        verified=True,
        confidence=confidence,
        discrepancies=[],
        consensus=VerificationConsensus(score_adjustment=0, recommendation_changes=[]),
        llm_comparison=LLMComparison(
            assessment_a=UNAVAILABLE_ASSESSMENT,
            assessment_b=UNAVAILABLE_ASSESSMENT,
            agreement_level=confidence,
        ),
    )


def build_verification_prompt(
    score: AdvancedATSScore,
    recommendations: Sequence[PrioritizedRecommendation],
    cv: ParsedCV,
) -> str:
    top = "\n".join(f"- {rec.priority}: {rec.title}" for rec in recommendations[:5])
    return "\n".join(
        [
            "Please verify this ATS optimization analysis for accuracy and completeness:",
            "",
            "CV Summary:",
            cv_to_text(cv)[:1500],
            "",
            "Analysis Results:",
            f"- Overall Score: {score.overall}",
            f"- Parsing: {score.breakdown.parsing}",
            f"- Keywords: {score.breakdown.keywords}",
            f"- Formatting: {score.breakdown.formatting}",
            f"- Content: {score.breakdown.content}",
            "",
            f"Top Recommendations ({len(recommendations)}):",
            top,
            "",
            "Please evaluate:",
            "1. Score accuracy - Are the individual scores reasonable for this CV?",
            "2. Recommendation relevance - Are the suggestions appropriate and actionable?",
            "3. Priority ranking - Is the prioritization logical?",
            "4. Missing analysis - What important aspects might be overlooked?",
            "5. Overall confidence - Rate the analysis quality 1-10",
        ]
    )


def _score_discrepancy(assessment: Assessment, overall: int) -> str | None:
    if abs(assessment.suggested_score - overall) > _threshold("discrepancy_threshold", 10):
        return f"{assessment.source} suggests score adjustment: {overall} → {assessment.suggested_score}"
    return None


def _unique(items: Sequence[str]) -> list[str]:
    out: list[str] = []
    for item in items:
        if item not in out:
            out.append(item)
    return out


def build_consensus(first: Assessment, second: Assessment, overall: int) -> VerificationResult:
    score_agreement = max(0.0, 1 - abs(first.suggested_score - second.suggested_score) / 100)
    agreement = (score_agreement + critique_similarity(first.critiques, second.critiques)) / 2

    min_confidence = _threshold("min_confidence", 6)
    verified = (
        agreement > _threshold("agreement_threshold", 0.7)
        and first.confidence > min_confidence
        and second.confidence > min_confidence
    )
    confidence = round(agreement * 50 + first.confidence * 2.5 + second.confidence * 2.5)

    discrepancies = [
        note for note in (_score_discrepancy(first, overall), _score_discrepancy(second, overall)) if note
    ]
    discrepancies.extend(first.critiques[:2])
    discrepancies.extend(second.critiques[:2])

    average = round((first.suggested_score + second.suggested_score) / 2)
    return VerificationResult(
        verified=verified,
        confidence=max(0, min(100, confidence)),
        discrepancies=_unique(discrepancies)[:5],
        consensus=VerificationConsensus(
            score_adjustment=cap_adjustment(average - overall),
            recommendation_changes=_unique([*first.improvements, *second.improvements])[:3],
        ),
        llm_comparison=LLMComparison(
            assessment_a=first.summary,
            assessment_b=second.summary,
            agreement_level=round(agreement * 100),
        ),
    )


def build_single_consensus(assessment: Assessment, missing_source: str, overall: int, *, first: bool) -> VerificationResult:
    """Consensus when only one service answered: agreement is measured against our own score."""
    agreement = max(0.0, 1 - abs(assessment.suggested_score - overall) / 100)
    verified = (
        agreement > _threshold("agreement_threshold", 0.7)
        and assessment.confidence > _threshold("min_confidence", 6)
    )
    confidence = round(agreement * 50 + assessment.confidence * 5)

    discrepancies = [f"{missing_source} verification unavailable; result based on a single assessment"]
    note = _score_discrepancy(assessment, overall)
    if note:
        discrepancies.append(note)
    discrepancies.extend(assessment.critiques[:2])

    summary_a, summary_b = (
        (assessment.summary, UNAVAILABLE_ASSESSMENT) if first else (UNAVAILABLE_ASSESSMENT, assessment.summary)
    )
    return VerificationResult(
        verified=verified,
        confidence=max(0, min(100, confidence)),
        discrepancies=_unique(discrepancies)[:5],
        consensus=VerificationConsensus(
            score_adjustment=cap_adjustment(assessment.suggested_score - overall),
            recommendation_changes=_unique(assessment.improvements)[:3],
        ),
        llm_comparison=LLMComparison(
            assessment_a=summary_a,
            assessment_b=summary_b,
            agreement_level=round(agreement * 100),
        ),
    )


class VerificationService:
    def __init__(
        self,
        primary: AIClient | None = None,
        secondary: AIClient | None = None,
        *,
        cfg: Settings | None = None,
    ):
        self._primary = primary
        self._secondary = secondary
        self._cfg = cfg or default_settings

    async def verify_results(
        self,
        score: AdvancedATSScore,
        recommendations: Sequence[PrioritizedRecommendation],
        cv: ParsedCV,
    ) -> VerificationResult:
        request = CompletionRequest(
            prompt=build_verification_prompt(score, recommendations, cv),
            system=_SYSTEM,
            max_tokens=2000,
            temperature=self._cfg.llm_temperature,
        )
        timeout = self._cfg.verification_timeout_s
        text_a, text_b = await asyncio.gather(
            generate_text(self._primary, request, timeout_s=timeout, label="verification_primary"),
            generate_text(self._secondary, request, timeout_s=timeout, label="verification_secondary"),
        )

        name_a = self._primary.name if self._primary is not None else "primary"
        name_b = self._secondary.name if self._secondary is not None else "secondary"

        if text_a is None and text_b is None:
            logger.info("verification_fallback reason=no_assessments")
            return fallback_verification()

        if text_b is None:
            return build_single_consensus(parse_verification_response(text_a, name_a), name_b, score.overall, first=True)
        if text_a is None:
            return build_single_consensus(parse_verification_response(text_b, name_b), name_a, score.overall, first=False)

        return build_consensus(
            parse_verification_response(text_a, name_a),
            parse_verification_response(text_b, name_b),
            score.overall,
        )
