"""
Prompt templates for code review analysis.

Templates use literal ``{{{language}}}`` and ``{{{code}}}`` placeholders. The
code is substituted verbatim, without escaping.
"""

from .models import AnalysisMode


LANGUAGE_PLACEHOLDER = "{{{language}}}"
CODE_PLACEHOLDER = "{{{code}}}"


SYSTEM_PROMPT = """You are a senior software engineer performing a code review.

## Rules:
1. Analyze the ENTIRE code as a whole
2. Return ONLY the JSON schema requested - no markdown, no explanations
3. Use standard Big-O notation for complexity
4. Consider loops, recursion, and data structures when estimating complexity
"""


FIX_PROMPT_TEMPLATE = """You are a highly skilled software engineer specializing in code analysis and optimization. Given the following code, identify any errors, automatically fix them, estimate the time complexity, and estimate the space complexity. Return the information in JSON format.

Language: {{{language}}}
Code:
{{{code}}}

Ensure that the "status" field is "correct" if no errors are found, and "fixed" if errors were fixed.
If no errors are found, the "errors" and "fixedCode" fields should be empty.
"""


REVIEW_PROMPT_TEMPLATE = """You are a highly skilled software engineer performing a thorough code review. Review the following code and return the result in JSON format.

Language: {{{language}}}
Code:
{{{code}}}

Report:
- "bugs": logic errors, crashes and incorrect behavior
- "performanceOptimizations": inefficient algorithms, redundant work and wasteful allocations
- "securityVulnerabilities": injection, unsafe input handling, hardcoded secrets and insecure transport
- "bestPractices": readability, structure, naming and idiomatic usage
- "rewrittenCode": the complete code with every bug and security issue fixed; if nothing needs fixing, return the code unchanged
- "timeComplexity" and "spaceComplexity": worst case Big-O estimates

Use an empty list for any category with no findings. Each finding is one short sentence.
"""


TEMPLATES: dict[str, str] = {
    "fix": FIX_PROMPT_TEMPLATE,
    "review": REVIEW_PROMPT_TEMPLATE,
}


def render_template(template: str, language: str, code: str) -> str:
    """Replace the first language placeholder, then the first code placeholder."""
    return template.replace(LANGUAGE_PLACEHOLDER, language, 1).replace(CODE_PLACEHOLDER, code, 1)


def build_prompt(language: str, code: str, mode: AnalysisMode = "review") -> str:
    """
    Build the analysis prompt for the LLM.

    Args:
        language: Language name as given by the caller
        code: Source code to analyze
        mode: "review" for the broad template, "fix" for the narrow one

    Returns:
        Formatted prompt string
    """
    try:
        template = TEMPLATES[mode]
    except KeyError:
        raise ValueError(f"Unknown analysis mode: {mode}") from None
    return render_template(template, language, code)
