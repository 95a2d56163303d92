"""Core module for code review analysis.

The orchestrator lives in ``core.analyzer``; it is not imported here because
the model providers depend on this package.
"""

from .errors import (
    AnalysisError,
    HeuristicAnalysisError,
    ModelInvocationError,
    ModelTimeoutError,
    RateLimitedError,
    ResponseSchemaError,
    ValidationError,
)
from .models import AnalysisRequest, AnalysisResult, FixReport, FullReview
from .heuristics import analyze_locally

__all__ = [
    "AnalysisError",
    "AnalysisRequest",
    "AnalysisResult",
    "FixReport",
    "FullReview",
    "HeuristicAnalysisError",
    "ModelInvocationError",
    "ModelTimeoutError",
    "RateLimitedError",
    "ResponseSchemaError",
    "ValidationError",
    "analyze_locally",
]
