"""
Core Code Review Analyzer.

Chooses between the model backends and the offline heuristics, then
normalizes whatever came back into an AnalysisResult.
"""

from typing import Literal, Optional

from .config import settings, logger
from .errors import ModelInvocationError, ValidationError
from .heuristics import analyze_locally
from .models import AnalysisMode, AnalysisRequest, AnalysisResult, FixReport, FullReview
from .prompts import build_prompt
from providers.adapter import default_model_available, invoke_model, model_name


Engine = Literal["auto", "model", "heuristic"]

OUTPUT_SCHEMAS = {
    "review": FullReview,
    "fix": FixReport,
}


def normalize_result(report, code: str, engine: Optional[str] = None) -> AnalysisResult:
    """Map a broad or narrow model report onto the canonical result."""
    if isinstance(report, AnalysisResult):
        return report
    if isinstance(report, FullReview):
        return AnalysisResult.from_review(report, engine=engine)
    if isinstance(report, FixReport):
        return AnalysisResult.from_fix_report(report, code, engine=engine)
    raise ValidationError(f"Unrecognized analysis shape: {type(report).__name__}")


class CodeAnalyzer:
    """
    Code review analyzer.

    Takes a request, returns an AnalysisResult from a model or the heuristics.
    """

    def __init__(self, engine: Optional[Engine] = None, fallback: Optional[bool] = None):
        """
        Args:
            engine: "model", "heuristic", or "auto" (model when one is configured)
            fallback: Use the heuristics when the model call fails
        """
        self.engine = engine or settings.ANALYSIS_ENGINE
        self.fallback = settings.FALLBACK_TO_HEURISTIC if fallback is None else fallback

    def _use_model(self, credential: Optional[str]) -> bool:
        if self.engine == "heuristic":
            return False
        if self.engine == "model":
            return True
        return bool(credential) or default_model_available()

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Analyze a submission.

        Raises:
            ValidationError: If code is empty or the model answered with an unknown shape
            ModelInvocationError: If the model call fails and fallback is off
        """
        code = request.code
        if not code or not code.strip():
            raise ValidationError("Code cannot be empty")

        if not self._use_model(request.credential):
            return analyze_locally(code, request.language)

        prompt = build_prompt(request.language, code, request.mode)
        schema = OUTPUT_SCHEMAS[request.mode]

        try:
            report = await invoke_model(prompt, schema, credential=request.credential)
        except ModelInvocationError as e:
            if not self.fallback:
                raise
            logger.warning("Model analysis failed, falling back to heuristics: %s", e)
            return analyze_locally(code, request.language)

        return normalize_result(report, code, engine=model_name(request.credential))


async def analyze(
    language: str,
    code: str,
    credential: Optional[str] = None,
    mode: AnalysisMode = "review",
) -> AnalysisResult:
    """Analyze ``code`` with the configured engine."""
    request = AnalysisRequest(language=language, code=code, credential=credential, mode=mode)
    return await CodeAnalyzer().analyze(request)
