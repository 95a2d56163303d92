"""
Pattern rules for the offline heuristic analyzer.

Rules are textual/regex matches over raw source, not a parser. False positives
and false negatives are expected.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Optional


SUPPORTED_LANGUAGES = ("python", "javascript", "typescript", "java", "c++", "html", "css")

LANGUAGE_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "cpp": "c++",
    "cxx": "c++",
}

JS_FAMILY = frozenset({"javascript", "typescript"})


def normalize_language(language: Optional[str]) -> str:
    """Lowercase and resolve aliases. Unknown names pass through."""
    name = (language or "").strip().lower()
    return LANGUAGE_ALIASES.get(name, name)


class Category(str, Enum):
    """Finding categories, in output order."""

    BUG = "bugs"
    PERFORMANCE = "performanceOptimizations"
    SECURITY = "securityVulnerabilities"
    BEST_PRACTICE = "bestPractices"


@dataclass(frozen=True)
class Rule:
    """A single pattern rule: (code, language) -> finding text or None."""

    rule_id: str
    category: Category
    message: str
    matches: Callable[[str, str], bool]
    languages: Optional[FrozenSet[str]] = None

    def applies_to(self, language: str) -> bool:
        return self.languages is None or language in self.languages

    def __call__(self, code: str, language: str) -> Optional[str]:
        language = normalize_language(language)
        if not self.applies_to(language):
            return None
        if self.matches(code, language):
            return self.message
        return None


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

VAR_KEYWORD_RE = re.compile(r"\bvar\s+")
EMPTY_PRINTLN_RE = re.compile(r"System\.out\.println\s*\(\s*\)")
THROW_RE = re.compile(r"\bthrow\b")
TRY_RE = re.compile(r"\btry\b")
MARKER_RE = re.compile(r"\b(?:TODO|FIXME|XXX|BUG|HACK)\b")

FOR_RE = re.compile(r"\bfor\b")
WHILE_RE = re.compile(r"\bwhile\b")
CONCAT_IN_LOOP_RE = re.compile(r"\+\s*=.*\+\s*.*\bfor\b|\bfor\b[\s\S]*\+\s*=")

INNER_HTML_RE = re.compile(r"innerHTML\s*=(?!=)")
PASSWORD_RE = re.compile(r"\b\w*?pass(?:word|wd)\w*\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)

BLANK_LINES_RE = re.compile(r"(?:^|\n)(?:[ \t]*\n){3}")
DECLARATION_RE = re.compile(r"\b(?:function|const|let|var|def|public|private)\b")


def count_loops(code: str) -> int:
    """Loop nesting proxy: the larger of the for-count and the while-count."""
    return max(len(FOR_RE.findall(code)), len(WHILE_RE.findall(code)))


def _loose_equality(code: str, language: str) -> bool:
    return "==" in code and "===" not in code


def _unhandled_throw(code: str, language: str) -> bool:
    return bool(THROW_RE.search(code)) and not TRY_RE.search(code)


def _string_concat(code: str, language: str) -> bool:
    return code.count("+ ") > 5


def _array_constructor(code: str, language: str) -> bool:
    return "new Array(" in code and "Array.from" not in code


def _chained_iteration(code: str, language: str) -> bool:
    return all(call in code for call in (".map(", ".filter(", ".reduce("))


def _insecure_transport(code: str, language: str) -> bool:
    return "http://" in code and "https://" not in code


def _comment_count(code: str, language: str) -> int:
    markers = ["//", "/*"]
    if language == "python":
        markers.append("#")
    elif language == "html":
        markers.append("<!--")
    return sum(code.count(marker) for marker in markers)


def _missing_comments(code: str, language: str) -> bool:
    return _comment_count(code, language) == 0 and len(code.split("\n")) > 10


def _missing_types(code: str, language: str) -> bool:
    return ": " not in code and "any" not in code


# ---------------------------------------------------------------------------
# Rule set
# ---------------------------------------------------------------------------

BUG_RULES = (
    Rule(
        "legacy-var",
        Category.BUG,
        "Using `var` causes hoisting issues - use `let` or `const` instead",
        lambda code, language: bool(VAR_KEYWORD_RE.search(code)),
        JS_FAMILY,
    ),
    Rule(
        "loose-equality",
        Category.BUG,
        "Loose equality (==) causes type coercion bugs - use strict equality (===) instead",
        _loose_equality,
        JS_FAMILY,
    ),
    Rule(
        "eval-call",
        Category.BUG,
        "eval() executes arbitrary strings as code and is slow and error prone",
        lambda code, language: "eval(" in code,
    ),
    Rule(
        "bare-except",
        Category.BUG,
        "Bare except clause swallows every error - specify the exception type",
        lambda code, language: "except:" in code,
        frozenset({"python"}),
    ),
    Rule(
        "empty-println",
        Category.BUG,
        "Empty println() statement detected - remove unnecessary output calls",
        lambda code, language: bool(EMPTY_PRINTLN_RE.search(code)),
        frozenset({"java"}),
    ),
    Rule(
        "unhandled-throw",
        Category.BUG,
        "Exception thrown but no try/catch block handles it",
        _unhandled_throw,
        frozenset({"java"}),
    ),
    Rule(
        "todo-marker",
        Category.BUG,
        "Found TODO/FIXME markers indicating incomplete or problematic code",
        lambda code, language: bool(MARKER_RE.search(code)),
    ),
)

PERFORMANCE_RULES = (
    Rule(
        "nested-loops",
        Category.PERFORMANCE,
        "Deeply nested loops detected - consider a more efficient algorithm or data structure",
        lambda code, language: len(FOR_RE.findall(code)) >= 3,
    ),
    Rule(
        "chained-iteration",
        Category.PERFORMANCE,
        "map/filter/reduce iterate the collection several times - combine them into a single pass",
        _chained_iteration,
    ),
    Rule(
        "string-concat",
        Category.PERFORMANCE,
        "Heavy string concatenation with + - use f-strings or str.join instead",
        _string_concat,
        frozenset({"python"}),
    ),
    Rule(
        "array-constructor",
        Category.PERFORMANCE,
        "Use Array.from() or an array literal instead of new Array()",
        _array_constructor,
    ),
    Rule(
        "concat-in-loop",
        Category.PERFORMANCE,
        "String concatenation inside a loop is inefficient - collect parts and join once",
        lambda code, language: bool(CONCAT_IN_LOOP_RE.search(code)),
    ),
)

SECURITY_RULES = (
    Rule(
        "html-injection",
        Category.SECURITY,
        "Assigning to innerHTML can cause XSS vulnerabilities - use textContent or DOM methods instead",
        lambda code, language: bool(INNER_HTML_RE.search(code)),
    ),
    Rule(
        "eval-injection",
        Category.SECURITY,
        "eval() is a code injection risk - never evaluate untrusted input",
        lambda code, language: "eval(" in code,
    ),
    Rule(
        "hardcoded-password",
        Category.SECURITY,
        "Hardcoded credentials detected - load secrets from environment variables or a secret store",
        lambda code, language: bool(PASSWORD_RE.search(code)),
    ),
    Rule(
        "sql-usage",
        Category.SECURITY,
        "Be cautious with SQL queries - use parameterized queries to prevent SQL injection",
        lambda code, language: "sql" in code.lower(),
    ),
    Rule(
        "insecure-transport",
        Category.SECURITY,
        "Plain HTTP URL found - use HTTPS for secure communication",
        _insecure_transport,
    ),
)

BEST_PRACTICE_RULES = (
    Rule(
        "blank-lines",
        Category.BEST_PRACTICE,
        "Reduce excessive blank lines for better readability",
        lambda code, language: bool(BLANK_LINES_RE.search(code)),
    ),
    Rule(
        "missing-comments",
        Category.BEST_PRACTICE,
        "Add comments to explain complex logic and improve maintainability",
        _missing_comments,
    ),
    Rule(
        "console-log",
        Category.BEST_PRACTICE,
        "Remove console.log calls or replace them with a proper logging framework",
        lambda code, language: "console.log(" in code,
        frozenset({"typescript"}),
    ),
    Rule(
        "too-many-declarations",
        Category.BEST_PRACTICE,
        "Consider breaking this code into smaller functions for better modularity",
        lambda code, language: len(DECLARATION_RE.findall(code)) > 20,
    ),
    Rule(
        "missing-types",
        Category.BEST_PRACTICE,
        "Add type annotations to improve clarity and catch errors early",
        _missing_types,
        frozenset({"typescript"}),
    ),
)

RULES = BUG_RULES + PERFORMANCE_RULES + SECURITY_RULES + BEST_PRACTICE_RULES

RULES_BY_ID = {rule.rule_id: rule for rule in RULES}
