"""
Data models for code review analysis.

FullReview and FixReport are the exact schemas the model must return.
AnalysisResult is the canonical shape handed back to callers.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


AnalysisMode = Literal["review", "fix"]

TimeLabel = Literal["O(1)", "O(n)", "O(n²)", "O(n³)"]
SpaceLabel = Literal["O(1)", "O(n)", "O(n²)"]


class AnalysisRequest(BaseModel):
    """A single submission."""
    language: str = Field(..., description="Programming language of the code")
    code: str = Field(..., description="Source code to analyze")
    credential: Optional[str] = Field(default=None, description="Caller supplied API key for the alternate backend")
    mode: AnalysisMode = Field(default="review", description="Broad review or narrow fix-only analysis")


class ComplexityEstimate(BaseModel):
    """Coarse static estimate produced by the heuristic analyzer."""
    time: TimeLabel = "O(1)"
    space: SpaceLabel = "O(1)"


class FullReview(BaseModel):
    """
    Broad review schema.

    This is the exact schema the LLM must return in review mode.
    """
    bugs: list[str] = Field(default_factory=list, description="Bugs found in the code")
    performanceOptimizations: list[str] = Field(default_factory=list, description="Performance improvements")
    securityVulnerabilities: list[str] = Field(default_factory=list, description="Security vulnerabilities")
    bestPractices: list[str] = Field(default_factory=list, description="Best practice suggestions")
    rewrittenCode: str = Field(..., description="The code rewritten with all fixes applied")
    timeComplexity: str = Field(..., description="Estimated time complexity in Big-O notation")
    spaceComplexity: str = Field(..., description="Estimated space complexity in Big-O notation")


class FixReport(BaseModel):
    """
    Narrow fix-only schema.

    This is the exact schema the LLM must return in fix mode.
    """
    status: Literal["correct", "fixed"] = Field(
        ..., description="correct if no errors were found, fixed if errors were automatically fixed"
    )
    errors: list[str] = Field(default_factory=list, description="Errors found in the code, if any")
    fixedCode: str = Field(default="", description="The corrected code, if any errors were found")
    timeComplexity: str = Field(..., description="Estimated time complexity of the code")
    spaceComplexity: str = Field(..., description="Estimated space complexity of the code")


class AnalysisResult(FullReview):
    """Canonical analysis result returned to callers."""
    engine: Optional[str] = Field(default=None, description="Model name or 'heuristic' (added server-side)")

    @classmethod
    def from_review(cls, review: FullReview, engine: Optional[str] = None) -> "AnalysisResult":
        return cls(**review.model_dump(), engine=engine)

    @classmethod
    def from_fix_report(cls, report: FixReport, code: str, engine: Optional[str] = None) -> "AnalysisResult":
        """Project a narrow report into the canonical shape; categories it lacks stay empty."""
        rewritten = code
        if report.status == "fixed" and report.fixedCode.strip():
            rewritten = report.fixedCode
        return cls(
            bugs=list(report.errors),
            rewrittenCode=rewritten,
            timeComplexity=report.timeComplexity,
            spaceComplexity=report.spaceComplexity,
            engine=engine,
        )

    def as_fix_report(self, code: str) -> FixReport:
        """Legacy projection into the narrow shape."""
        changed = self.rewrittenCode != code
        return FixReport(
            status="fixed" if changed else "correct",
            errors=list(self.bugs) + list(self.securityVulnerabilities),
            fixedCode=self.rewrittenCode if changed else "",
            timeComplexity=self.timeComplexity,
            spaceComplexity=self.spaceComplexity,
        )
