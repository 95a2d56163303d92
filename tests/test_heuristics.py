import re
import time

import pytest

from core import heuristics
from core.errors import HeuristicAnalysisError
from core.heuristics import (
    analyze_locally,
    estimate_complexity,
    flip_equality,
    is_recursive,
    rewrite_code,
)
from core.rules import RULES_BY_ID, Category, Rule


def messages(*rule_ids):
    return [RULES_BY_ID[rule_id].message for rule_id in rule_ids]


# Equality flip

def test_flip_equality_normalizes_both_operators():
    assert flip_equality("if (a == b || c === d) {") == "if (a === b || c === d) {"


def test_flip_equality_keeps_strict_equality():
    assert flip_equality("x === y") == "x === y"


def test_flip_equality_leaves_other_comparisons():
    code = "if (a !== b && c != d && e <= f && g >= h) {}"
    assert flip_equality(code) == code


def test_flip_equality_is_idempotent():
    code = "a == b; c === d; e == f"
    once = flip_equality(code)
    assert flip_equality(once) == once


def test_flip_equality_is_not_a_single_replace():
    code = "a == b && c === d"
    assert flip_equality(code) != code.replace("==", "===")
    assert "====" not in flip_equality(code)


def test_flip_equality_rewrites_only_first_of_a_chain():
    assert flip_equality("a==b==c") == "a===b==c"


# Rewrites

@pytest.mark.parametrize("rule_id, code, expected", [
    ("legacy-var", "var a = 1;\nvar  b = 2;", "let a = 1;\nlet b = 2;"),
    ("eval-call", "eval(a); eval(b);", "Function(a); Function(b);"),
    ("bare-except", "try:\n    f()\nexcept:\n    pass", "try:\n    f()\nexcept Exception:\n    pass"),
    ("empty-println", "System.out.println();", "// Removed empty output;"),
    ("html-injection", "el.innerHTML = x;", "el.textContent = x;"),
    ("insecure-transport", "get('http://a'); get('http://b')", "get('https://a'); get('https://b')"),
])
def test_rewrite_code_single_fix(rule_id, code, expected):
    assert rewrite_code(code, {rule_id}) == expected


def test_rewrite_code_ignores_rules_that_did_not_fire():
    code = "var a = eval('1') == 2;"
    assert rewrite_code(code, set()) == code
    assert rewrite_code(code, {"nested-loops", "sql-usage"}) == code


# Complexity

@pytest.mark.parametrize("code, expected", [
    ("x = 1", "O(1)"),
    ("for i in range(n):\n    pass", "O(n)"),
    ("while (x) { x--; }", "O(n)"),
    ("for a in x:\n    for b in y:\n        pass", "O(n²)"),
    ("for a in x:\n for b in y:\n  for c in z:\n   pass", "O(n³)"),
    ("for a in x:\n for b in y:\n  for c in z:\n   for d in w:\n    pass", "O(n³)"),
    ("if (x == 1) { y(); }", "O(1)"),
])
def test_time_complexity_follows_loop_count(code, expected):
    assert estimate_complexity(code).time == expected


def test_recursion_detection():
    assert is_recursive("def fact(n):\n    return 1 if n <= 1 else n * fact(n - 1)")
    assert is_recursive("function fib(n) { return n < 2 ? n : fib(n - 1) + fib(n - 2); }")
    assert is_recursive("int depth(Node n) { return n == null ? 0 : 1 + depth(n.next); }")
    assert is_recursive("// recursive helper\nint x = 1;")
    assert not is_recursive("def add(a, b):\n    return a + b")
    assert not is_recursive("} else if (x) { run(); }")


def test_recursion_detection_is_linear_on_unterminated_throws():
    code = "int f() throws " + " " * 50_000
    start = time.perf_counter()
    assert not is_recursive(code)
    assert time.perf_counter() - start < 1.0


def test_recursion_sets_linear_space():
    estimate = estimate_complexity("def fact(n):\n    return 1 if n <= 1 else n * fact(n - 1)")
    assert estimate.time == "O(1)"
    assert estimate.space == "O(n)"


def test_collection_keyword_bumps_space_once():
    code = """function cube(n) {
  const cells = [];
  for (let i = 0; i < n; i++) {
    for (let j = 0; j < n; j++) {
      for (let k = 0; k < n; k++) {
        cells.push(i * j * k);
      }
    }
  }
  return cells;
}"""
    estimate = estimate_complexity(code)
    assert estimate.time == "O(n³)"
    assert estimate.space == "O(n)"


def test_recursion_and_collection_compose():
    code = """def walk(node, depth):
    items = []
    for a in node:
        for b in a:
            for c in b:
                items.append(walk(c, depth + 1))
    return items
"""
    estimate = estimate_complexity(code)
    assert estimate.time == "O(n³)"
    assert estimate.space == "O(n²)"


# Full analysis

def test_analyze_locally_javascript_example():
    code = "var x = 1; if (x == 1) { eval(y); }"
    result = analyze_locally(code, "javascript")

    assert result.bugs == messages("legacy-var", "loose-equality", "eval-call")
    assert result.securityVulnerabilities == messages("eval-injection")
    assert result.performanceOptimizations == []
    assert result.bestPractices == []
    assert result.rewrittenCode == "let x = 1; if (x === 1) { Function(y); }"
    assert result.timeComplexity == "O(1)"
    assert result.spaceComplexity == "O(1)"
    assert result.engine == "heuristic"


def test_rewrite_removes_var_bindings():
    code = "var total = 0;\nvar items = [1, 2];\nitems.forEach(function (i) { total += i; });"
    result = analyze_locally(code, "javascript")

    assert RULES_BY_ID["legacy-var"].message in result.bugs
    assert not re.search(r"\bvar\s", result.rewrittenCode)


def test_no_bug_or_security_finding_keeps_code_unchanged():
    code = "for a in xs:\n    for b in ys:\n        for c in zs:\n            total = a * b * c\n"
    result = analyze_locally(code, "python")

    assert result.performanceOptimizations
    assert not result.bugs
    assert not result.securityVulnerabilities
    assert result.rewrittenCode == code


def test_security_finding_alone_triggers_rewrite():
    code = 'el.innerHTML = "<b>hi</b>";\nfetch("http://api.example.com");'
    result = analyze_locally(code, "javascript")

    assert result.bugs == []
    assert result.securityVulnerabilities == messages("html-injection", "insecure-transport")
    assert result.rewrittenCode == 'el.textContent = "<b>hi</b>";\nfetch("https://api.example.com");'


def test_python_bare_except_is_rewritten():
    code = "try:\n    risky()\nexcept:\n    pass\n"
    result = analyze_locally(code, "Python")

    assert result.bugs == messages("bare-except")
    assert "except Exception:" in result.rewrittenCode


def test_java_println_and_throw():
    code = "public void run() {\n    System.out.println();\n    throw new RuntimeException();\n}"
    result = analyze_locally(code, "java")

    assert result.bugs == messages("empty-println", "unhandled-throw")
    assert "// Removed empty output;" in result.rewrittenCode


def test_unknown_language_uses_agnostic_rules_only():
    code = "var x = 1; if (x == 1) { eval(y); }"
    result = analyze_locally(code, "klingon")

    assert result.bugs == messages("eval-call")
    assert result.rewrittenCode == "var x = 1; if (x == 1) { Function(y); }"


def test_failing_rule_is_reported_as_defect(monkeypatch):
    broken = Rule("broken", Category.BUG, "never", lambda code, language: 1 / 0)
    monkeypatch.setattr(heuristics, "RULES", (broken,))

    with pytest.raises(HeuristicAnalysisError, match="broken"):
        analyze_locally("x = 1", "python")
