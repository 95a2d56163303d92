"""
Offline heuristic analyzer.

Applies the pattern rules, rewrites the code when bugs or security findings
fired, and estimates complexity. No network access.
"""
from __future__ import annotations

import re

from .config import logger
from .errors import HeuristicAnalysisError
from .models import AnalysisResult, ComplexityEstimate
from .rules import RULES, Category, Rule, count_loops, normalize_language


HEURISTIC_ENGINE = "heuristic"

TIME_LABELS = ("O(1)", "O(n)", "O(n²)", "O(n³)")
SPACE_LABELS = ("O(1)", "O(n)", "O(n²)")

COLLECTION_KEYWORDS = ("array", "Array", "list", "List", "[]", "HashMap", "vector", "dict")

FUNCTION_DEF_RE = re.compile(r"\b(?:function|def)\s+(\w+)\s*\(")
C_STYLE_DEF_RE = re.compile(r"\b[\w<>\[\]]+\s+(\w+)\s*\([^)]*\)\s*(?:throws\s+[\w.]+(?:\s*,\s*[\w.]+)*\s*)?\{")
NOT_FUNCTION_NAMES = frozenset({"if", "for", "while", "switch", "catch", "return", "else", "new"})

STRICT_EQ_RE = re.compile(r"([^=!<>])===([^=])|^===([^=])")
# Matches consume their neighbours and never overlap, so in a chain like
# `a==b==c` only the first operator is rewritten.
LOOSE_EQ_RE = re.compile(r"([^=!<>])==([^=])|^==([^=])")


def run_rules(code: str, language: str) -> list[tuple[Rule, str]]:
    """Return (rule, finding) for every rule that fired, in rule order."""
    hits = []
    for rule in RULES:
        try:
            finding = rule(code, language)
        except Exception as e:
            raise HeuristicAnalysisError(f"Rule {rule.rule_id} failed: {e}") from e
        if finding is not None:
            hits.append((rule, finding))
    return hits


def flip_equality(code: str) -> str:
    """
    Two-pass equality normalization.

    First every ``===`` becomes ``==``, then every ``==`` (not part of ``!=``,
    ``<=``, ``>=`` or a longer run) becomes ``===``. Running the passes in the
    other order, or as one pass, gives different output.
    """
    code = STRICT_EQ_RE.sub(r"\1==\2\3", code)
    return LOOSE_EQ_RE.sub(r"\1===\2\3", code)


def rewrite_code(code: str, fired: set[str]) -> str:
    """Apply the textual fixes for the rules in ``fired``, in a fixed order."""
    rewritten = code
    if "legacy-var" in fired:
        rewritten = re.sub(r"\bvar\s+", "let ", rewritten)
    if "loose-equality" in fired:
        rewritten = flip_equality(rewritten)
    if "eval-call" in fired:
        rewritten = rewritten.replace("eval(", "Function(")
    if "bare-except" in fired:
        rewritten = rewritten.replace("except:", "except Exception:")
    if "empty-println" in fired:
        rewritten = re.sub(r"System\.out\.println\s*\(\s*\)", "// Removed empty output", rewritten)
    if "html-injection" in fired:
        rewritten = re.sub(r"\.innerHTML\s*=(?!=)", ".textContent =", rewritten)
    if "insecure-transport" in fired:
        rewritten = rewritten.replace("http://", "https://")
    return rewritten


def is_recursive(code: str) -> bool:
    """True when the code says so, or a defined function calls itself later on."""
    if "recursive" in code:
        return True
    for pattern in (FUNCTION_DEF_RE, C_STYLE_DEF_RE):
        for match in pattern.finditer(code):
            name = match.group(1)
            if name in NOT_FUNCTION_NAMES:
                continue
            if re.search(rf"\b{re.escape(name)}\s*\(", code[match.end():]):
                return True
    return False


def estimate_complexity(code: str) -> ComplexityEstimate:
    """
    Coarse complexity guess.

    Time follows the loop count. Space starts at O(1), recursion raises it to
    O(n), and a collection keyword bumps it one more tier.
    """
    loops = count_loops(code)
    time = TIME_LABELS[min(loops, len(TIME_LABELS) - 1)]

    space = 0
    if is_recursive(code):
        space = 1
    if any(keyword in code for keyword in COLLECTION_KEYWORDS):
        space = min(space + 1, len(SPACE_LABELS) - 1)

    return ComplexityEstimate(time=time, space=SPACE_LABELS[space])


def analyze_locally(code: str, language: str) -> AnalysisResult:
    """
    Analyze code without a model.

    Args:
        code: Source code to analyze
        language: Language name; unknown names only get language-agnostic rules

    Returns:
        AnalysisResult with engine set to "heuristic"
    """
    language = normalize_language(language)
    hits = run_rules(code, language)

    findings: dict[Category, list[str]] = {category: [] for category in Category}
    for rule, finding in hits:
        findings[rule.category].append(finding)

    has_issues = bool(findings[Category.BUG] or findings[Category.SECURITY])
    if has_issues:
        rewritten = rewrite_code(code, {rule.rule_id for rule, _ in hits})
    else:
        rewritten = code

    complexity = estimate_complexity(code)
    logger.debug(
        "Heuristic analysis (%s): %d findings, time=%s, space=%s",
        language or "unknown",
        len(hits),
        complexity.time,
        complexity.space,
    )

    return AnalysisResult(
        bugs=findings[Category.BUG],
        performanceOptimizations=findings[Category.PERFORMANCE],
        securityVulnerabilities=findings[Category.SECURITY],
        bestPractices=findings[Category.BEST_PRACTICE],
        rewrittenCode=rewritten,
        timeComplexity=complexity.time,
        spaceComplexity=complexity.space,
        engine=HEURISTIC_ENGINE,
    )
