from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ats_engine.schemas.cv import ParsedCV

Priority = Literal["critical", "high", "medium", "low"]
Effort = Literal["low", "medium", "high"]
ActionRequired = Literal["add", "modify", "remove"]
ImpactLabel = Literal["high", "medium", "low"]
IssueType = Literal["critical", "warning", "info"]
IssueSeverity = Literal["critical", "high", "warning", "medium", "low"]


class KeywordMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    variations: tuple[str, ...] = ()
    frequency: int = Field(ge=0)
    importance: float = Field(ge=0.0, le=1.0)
    context: tuple[str, ...] = Field(default=(), max_length=3)


class ATSSystemConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    parsing_weight: float = Field(ge=0.0, le=1.0)
    keyword_weight: float = Field(ge=0.0, le=1.0)
    format_weight: float = Field(ge=0.0, le=1.0)
    content_weight: float = Field(ge=0.0, le=1.0)
    preferred_formats: tuple[str, ...] = ()
    keyword_density_range: tuple[float, float] = (0.02, 0.05)
    common_issues: tuple[str, ...] = ()
    preferred_keywords: tuple[str, ...] = ()
    optimization_tips: tuple[str, ...] = ()


class ATSSystemSimulation(BaseModel):
    system_name: str
    pass_rate: float = Field(ge=0.0, le=100.0)
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    parsing_accuracy: int = Field(default=0, ge=0, le=100)
    keyword_matching: int = Field(default=0, ge=0, le=100)
    format_compatibility: int = Field(default=0, ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class SemanticKeywordAnalysis(BaseModel):
    primary_keywords: list[KeywordMatch] = Field(default_factory=list)
    industry_terms: list[KeywordMatch] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    keyword_density: float = Field(default=0.0, ge=0.0)
    optimal_density: float = Field(default=0.03, gt=0.0)
    semantic_variations: list[str] = Field(default_factory=list)
    trending_keywords: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class CompetitorAnalysis(BaseModel):
    similar_profiles: int = Field(default=0, ge=0)
    keyword_gaps: list[str] = Field(default_factory=list)
    strengths_vs_competitors: list[str] = Field(default_factory=list)
    improvement_opportunities: list[str] = Field(default_factory=list)
    market_positioning: str = "Standard"
    competitive_advantage: list[str] = Field(default_factory=list)
    benchmark_score: int = Field(default=75, ge=0, le=100)


class ScoreBreakdown(BaseModel):
    parsing: int = Field(ge=0, le=100)
    formatting: int = Field(ge=0, le=100)
    keywords: int = Field(ge=0, le=100)
    content: int = Field(ge=0, le=100)
    specificity: int = Field(ge=0, le=100)
    experience: int = Field(ge=0, le=100)
    education: int = Field(ge=0, le=100)
    skills: int = Field(ge=0, le=100)
    achievements: int = Field(ge=0, le=100)


class PrioritizedRecommendation(BaseModel):
    id: str
    category: str = "general"
    priority: Priority = "medium"
    title: str = "Optimization Needed"
    description: str = "Apply recommended improvements"
    impact: int = Field(default=50, ge=0, le=100)
    effort: Effort = "medium"
    estimated_score_improvement: int = Field(default=10, ge=0, le=100)
    action_required: ActionRequired = "modify"
    section: str = "content"
    ats_systems_affected: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    implementation: list[str] = Field(default_factory=lambda: ["Apply recommended changes"])
    time_estimate: str = "1-2 hours"


class AdvancedATSScore(BaseModel):
    overall: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    recommendations: list[PrioritizedRecommendation] = Field(default_factory=list)
    competitor_analysis: CompetitorAnalysis
    semantic_keywords: SemanticKeywordAnalysis
    industry_benchmark: float
    estimated_pass_rate: float = Field(ge=0.0, le=1.0)
    simulation_results: list[ATSSystemSimulation] = Field(default_factory=list)
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)


class VerificationConsensus(BaseModel):
    score_adjustment: int = 0
    recommendation_changes: list[str] = Field(default_factory=list)


class LLMComparison(BaseModel):
    assessment_a: str = ""
    assessment_b: str = ""
    agreement_level: int = Field(default=0, ge=0, le=100)


class VerificationResult(BaseModel):
    verified: bool
    confidence: int = Field(ge=0, le=100)
    discrepancies: list[str] = Field(default_factory=list)
    consensus: VerificationConsensus = Field(default_factory=VerificationConsensus)
    llm_comparison: LLMComparison = Field(default_factory=LLMComparison)


class ATSIssue(BaseModel):
    type: IssueType = "warning"
    description: str
    severity: IssueSeverity = "medium"
    location: str = "CV content"


class ATSSuggestion(BaseModel):
    category: str = "general"
    suggestion: str
    impact: ImpactLabel = "medium"
    implementation: str = "Apply the recommended changes to improve ATS compatibility"


class KeywordSummary(BaseModel):
    found: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    recommended: list[str] = Field(default_factory=list)
    density: float = Field(default=0.0, ge=0.0)


class ProcessingMetadata(BaseModel):
    timestamp: str
    version: str
    confidence: float = Field(ge=0.0, le=1.0)
    degraded: bool = False
    processing_time_ms: int = Field(default=0, ge=0)
    stages: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    overall: int = Field(ge=0, le=100)
    passes: bool
    breakdown: ScoreBreakdown
    recommendations: list[PrioritizedRecommendation] = Field(default_factory=list)
    issues: list[ATSIssue] = Field(default_factory=list)
    suggestions: list[ATSSuggestion] = Field(default_factory=list)
    keywords: KeywordSummary = Field(default_factory=KeywordSummary)
    verification: VerificationResult
    metadata: ProcessingMetadata
    advanced_score: AdvancedATSScore | None = None
    semantic_analysis: SemanticKeywordAnalysis | None = None
    system_simulations: list[ATSSystemSimulation] | None = None
    competitor_benchmark: CompetitorAnalysis | None = None


class TemplateFormatting(BaseModel):
    model_config = ConfigDict(frozen=True)

    fonts: tuple[str, ...] = ()
    headings: str = ""
    bullets: str = ""
    spacing: str = ""


class ATSTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    industry: str | None = None
    role: str | None = None
    description: str = ""
    features: tuple[str, ...] = ()
    compatibility: dict[str, int] = Field(default_factory=dict)
    sections: tuple[str, ...] = ()
    formatting: TemplateFormatting = Field(default_factory=TemplateFormatting)
    signals: tuple[str, ...] = ()

    @property
    def average_compatibility(self) -> float:
        if not self.compatibility:
            return 0.0
        return sum(self.compatibility.values()) / len(self.compatibility)


class FormatAnalysis(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    best_templates: list[str] = Field(default_factory=list)


class OptimizedContent(BaseModel):
    cv: ParsedCV
    keywords: list[str] = Field(default_factory=list)
    changed_sections: list[str] = Field(default_factory=list)
