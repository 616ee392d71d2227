from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field

from ats_engine.schemas.ats import KeywordMatch

_INDUSTRY_INTEGRATION_HINTS = {
    "technology": "Consider adding technical keywords to project descriptions",
    "finance": "Include regulatory and compliance terms where relevant",
    "healthcare": "Add clinical and patient care terminology appropriately",
}


class ContextualSuggestions(BaseModel):
    integration: list[str] = Field(default_factory=list)
    placement: list[str] = Field(default_factory=list)
    variations: list[str] = Field(default_factory=list)


class KeywordStrategyAssessment(BaseModel):
    score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    priority: Literal["low", "medium", "high"] = "medium"


class KeywordRecommendationEngine:
    def generate_recommendations(
        self,
        matched: Sequence[KeywordMatch],
        missing: Sequence[str],
        current_density: float,
        optimal_density: float,
    ) -> list[str]:
        recommendations: list[str] = []
        if missing:
            recommendations.append(f"Add missing keywords: {', '.join(missing[:5])}")

        if current_density < optimal_density * 0.8:
            recommendations.append("Increase keyword density by incorporating more relevant terms")
        elif current_density > optimal_density * 1.2:
            recommendations.append("Reduce keyword density to avoid appearing as keyword stuffing")

        if any(match.frequency == 1 for match in matched):
            recommendations.append("Increase frequency of important keywords by using them in multiple sections")
        return recommendations

    def generate_contextual_suggestions(
        self,
        matched: Sequence[KeywordMatch],
        missing: Sequence[str],
        industry: str | None = None,
    ) -> ContextualSuggestions:
        return ContextualSuggestions(
            integration=self._integration_suggestions(missing, industry),
            placement=self._placement_suggestions(matched),
            variations=self._variation_suggestions(matched),
        )

    def _integration_suggestions(self, missing: Sequence[str], industry: str | None) -> list[str]:
        if not missing:
            return []
        suggestions = [f'Integrate "{missing[0]}" into your professional summary']
        if len(missing) > 1:
            suggestions.append(f'Add "{missing[1]}" to relevant experience descriptions')
        if len(missing) > 2:
            suggestions.append(f'Include "{missing[2]}" in your skills section')
        hint = _INDUSTRY_INTEGRATION_HINTS.get((industry or "").lower())
        if hint:
            suggestions.append(hint)
        return suggestions

    def _placement_suggestions(self, matched: Sequence[KeywordMatch]) -> list[str]:
        suggestions: list[str] = []
        low_frequency = [match for match in matched if match.frequency == 1]
        if low_frequency:
            keyword = low_frequency[0].keyword
            suggestions.append(f'Use "{keyword}" in multiple contexts to strengthen relevance')
            suggestions.append(f'Consider adding "{keyword}" to your skills or achievements section')
        if any(match.importance > 0.8 for match in matched):
            suggestions.append("Emphasize high-relevance keywords in section headers when appropriate")
        return suggestions

    def _variation_suggestions(self, matched: Sequence[KeywordMatch]) -> list[str]:
        suggestions: list[str] = []
        if matched:
            suggestions.append(
                f'Consider synonyms and variations of "{matched[0].keyword}" for natural language flow'
            )
        if any(match.frequency > 3 for match in matched):
            suggestions.append("Replace some repeated keywords with synonyms to avoid over-optimization")
        suggestions.append('Use both acronyms and full terms (e.g., "AI" and "Artificial Intelligence")')
        return suggestions

    def assess_keyword_strategy(
        self,
        matched: Sequence[KeywordMatch],
        missing: Sequence[str],
        current_density: float,
        optimal_density: float,
    ) -> KeywordStrategyAssessment:
        score = 50
        strengths: list[str] = []
        weaknesses: list[str] = []

        total = len(matched) + len(missing)
        coverage = len(matched) / total if total else 0.0
        if coverage > 0.8:
            score += 20
            strengths.append("Excellent keyword coverage")
        elif coverage > 0.6:
            score += 10
            strengths.append("Good keyword coverage")
        else:
            score -= 10
            weaknesses.append("Low keyword coverage - missing critical terms")

        ratio = current_density / optimal_density if optimal_density else 0.0
        if 0.8 <= ratio <= 1.2:
            score += 15
            strengths.append("Optimal keyword density")
        elif ratio < 0.6:
            score -= 15
            weaknesses.append("Keyword density too low")
        elif ratio > 1.5:
            score -= 10
            weaknesses.append("Keyword density too high")

        avg_relevance = sum(match.importance for match in matched) / len(matched) if matched else 0.0
        if avg_relevance > 0.7:
            score += 15
            strengths.append("High keyword relevance")
        elif avg_relevance < 0.5:
            score -= 10
            weaknesses.append("Low keyword relevance")

        priority: Literal["low", "medium", "high"] = "medium"
        if score < 60:
            priority = "high"
        elif score > 80:
            priority = "low"

        return KeywordStrategyAssessment(
            score=max(0, min(100, score)),
            strengths=strengths,
            weaknesses=weaknesses,
            priority=priority,
        )
