from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class AnalysisError(RuntimeError):
    def __init__(self, message: str, *, code: str = "analysis_failed"):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one pipeline stage; the orchestrator decides what a failure falls back to."""

    stage: str
    value: T | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, stage: str, value: T) -> "StageResult[T]":
        return cls(stage=stage, value=value)

    @classmethod
    def failure(cls, stage: str, exc: BaseException, *, code: str = "stage_failed") -> "StageResult[T]":
        error = exc if isinstance(exc, AnalysisError) else AnalysisError(f"{stage}: {exc}", code=code)
        return cls(stage=stage, error=error)
