from .errors import AnalysisError, StageResult
from .orchestrator import ATSOptimizationOrchestrator, analyze_cv, build_orchestrator

__all__ = [
    "AnalysisError",
    "ATSOptimizationOrchestrator",
    "StageResult",
    "analyze_cv",
    "build_orchestrator",
]
