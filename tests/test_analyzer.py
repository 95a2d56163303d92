import asyncio

import pytest

from core import analyzer as analyzer_module
from core.analyzer import CodeAnalyzer, analyze
from core.config import settings
from core.errors import ModelInvocationError, RateLimitedError, ValidationError
from core.models import AnalysisRequest, FixReport, FullReview


JS_CODE = "var x = 1; if (x == 1) { eval(y); }"


class FakeInvoke:
    """Records calls and returns a canned report or raises."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def __call__(self, prompt, output_schema, credential=None):
        self.calls.append((prompt, output_schema, credential))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def no_default_model(monkeypatch):
    monkeypatch.setattr(analyzer_module, "default_model_available", lambda: False)


def review():
    return FullReview(
        bugs=["uses var"],
        securityVulnerabilities=["eval"],
        rewrittenCode="let x = 1;",
        timeComplexity="O(1)",
        spaceComplexity="O(1)",
    )


def run(coro):
    return asyncio.run(coro)


def test_heuristic_engine_never_calls_model(monkeypatch):
    fake = FakeInvoke(error=AssertionError("model must not be called"))
    monkeypatch.setattr(analyzer_module, "invoke_model", fake)

    result = run(CodeAnalyzer(engine="heuristic").analyze(
        AnalysisRequest(language="javascript", code=JS_CODE, credential="key")
    ))

    assert result.engine == "heuristic"
    assert fake.calls == []


def test_auto_without_model_uses_heuristics(monkeypatch, no_default_model):
    fake = FakeInvoke(error=AssertionError("model must not be called"))
    monkeypatch.setattr(analyzer_module, "invoke_model", fake)

    result = run(CodeAnalyzer(engine="auto").analyze(AnalysisRequest(language="javascript", code=JS_CODE)))

    assert result.engine == "heuristic"
    assert result.rewrittenCode == "let x = 1; if (x === 1) { Function(y); }"


def test_auto_with_credential_uses_model(monkeypatch, no_default_model):
    fake = FakeInvoke(result=review())
    monkeypatch.setattr(analyzer_module, "invoke_model", fake)

    result = run(CodeAnalyzer(engine="auto").analyze(
        AnalysisRequest(language="javascript", code=JS_CODE, credential="user-key")
    ))

    prompt, schema, credential = fake.calls[0]
    assert JS_CODE in prompt
    assert schema is FullReview
    assert credential == "user-key"
    assert result.bugs == ["uses var"]
    assert result.engine == settings.GROQ_MODEL


def test_auto_with_default_model_uses_model(monkeypatch):
    monkeypatch.setattr(analyzer_module, "default_model_available", lambda: True)
    monkeypatch.setattr(analyzer_module, "model_name", lambda credential=None: "gemini-test")
    fake = FakeInvoke(result=review())
    monkeypatch.setattr(analyzer_module, "invoke_model", fake)

    result = run(CodeAnalyzer(engine="auto").analyze(AnalysisRequest(language="python", code="print(1)")))

    assert fake.calls[0][2] is None
    assert result.engine == "gemini-test"


def test_fix_mode_requests_narrow_schema(monkeypatch):
    report = FixReport(status="fixed", errors=["typo"], fixedCode="print(1)",
                       timeComplexity="O(1)", spaceComplexity="O(1)")
    fake = FakeInvoke(result=report)
    monkeypatch.setattr(analyzer_module, "invoke_model", fake)

    result = run(CodeAnalyzer(engine="model").analyze(
        AnalysisRequest(language="python", code="prnt(1)", credential="k", mode="fix")
    ))

    prompt, schema, _ = fake.calls[0]
    assert schema is FixReport
    assert '"status"' in prompt
    assert result.bugs == ["typo"]
    assert result.rewrittenCode == "print(1)"
    assert result.bestPractices == []


def test_model_errors_propagate_unchanged(monkeypatch):
    error = RateLimitedError("slow down", retry_after=5)
    monkeypatch.setattr(analyzer_module, "invoke_model", FakeInvoke(error=error))

    with pytest.raises(RateLimitedError) as excinfo:
        run(CodeAnalyzer(engine="model", fallback=False).analyze(
            AnalysisRequest(language="python", code="print(1)")
        ))

    assert excinfo.value is error


def test_fallback_returns_heuristic_result(monkeypatch):
    monkeypatch.setattr(analyzer_module, "invoke_model", FakeInvoke(error=ModelInvocationError("down")))

    result = run(CodeAnalyzer(engine="model", fallback=True).analyze(
        AnalysisRequest(language="javascript", code=JS_CODE)
    ))

    assert result.engine == "heuristic"
    assert result.bugs


@pytest.mark.parametrize("code", ["", "   \n\t"])
def test_empty_code_is_rejected(code):
    with pytest.raises(ValidationError):
        run(CodeAnalyzer(engine="heuristic").analyze(AnalysisRequest(language="python", code=code)))


def test_module_entry_point_uses_settings(monkeypatch):
    monkeypatch.setattr(settings, "ANALYSIS_ENGINE", "heuristic")

    result = run(analyze("klingon", "x = eval(y)"))

    assert result.engine == "heuristic"
    assert result.rewrittenCode == "x = Function(y)"
