from .ats import (
    AdvancedATSScore,
    AnalysisResult,
    ATSIssue,
    ATSSuggestion,
    ATSSystemConfig,
    ATSSystemSimulation,
    ATSTemplate,
    CompetitorAnalysis,
    FormatAnalysis,
    KeywordMatch,
    KeywordSummary,
    LLMComparison,
    OptimizedContent,
    PrioritizedRecommendation,
    ProcessingMetadata,
    ScoreBreakdown,
    SemanticKeywordAnalysis,
    TemplateFormatting,
    VerificationConsensus,
    VerificationResult,
)
from .cv import (
    CategorizedSkills,
    EducationEntry,
    ExperienceEntry,
    FlatSkills,
    ParsedCV,
    PersonalInfo,
    Skills,
)

__all__ = [
    "AdvancedATSScore",
    "AnalysisResult",
    "ATSIssue",
    "ATSSuggestion",
    "ATSSystemConfig",
    "ATSSystemSimulation",
    "ATSTemplate",
    "CategorizedSkills",
    "CompetitorAnalysis",
    "EducationEntry",
    "ExperienceEntry",
    "FlatSkills",
    "FormatAnalysis",
    "KeywordMatch",
    "KeywordSummary",
    "LLMComparison",
    "OptimizedContent",
    "ParsedCV",
    "PersonalInfo",
    "PrioritizedRecommendation",
    "ProcessingMetadata",
    "ScoreBreakdown",
    "SemanticKeywordAnalysis",
    "Skills",
    "TemplateFormatting",
    "VerificationConsensus",
    "VerificationResult",
]
