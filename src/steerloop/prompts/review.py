"""Code review prompt for LLMReviewValidator."""

from __future__ import annotations

import json
from typing import Any, Mapping

from steerloop.formatting import add_line_numbers

REVIEW_SYSTEM_PROMPT: str = (
    "You are a strict code reviewer. You answer with a single JSON object "
    "and nothing else."
)

REVIEW_INSTRUCTIONS: str = (
    "Check for:\n"
    "1. Syntax errors or bugs\n"
    "2. Security vulnerabilities\n"
    "3. Best practices violations\n"
    "4. Logic errors\n"
    "5. Code quality issues\n"
    "6. Performance concerns\n\n"
    "Respond in this JSON format:\n"
    "{\n"
    '    "valid": true/false,\n'
    '    "errors": ["critical issues that prevent the code from working"],\n'
    '    "warnings": ["non-critical issues or improvements"],\n'
    '    "summary": "brief overall assessment"\n'
    "}\n\n"
    "Cite line numbers in errors where they apply.\n"
    "Respond ONLY with the JSON review."
)


def build_review_prompt(
    code: str,
    *,
    language: str = "python",
    context: Mapping[str, Any] | None = None,
    number_lines: bool = False,
) -> str:
    """Build the user prompt asking for a JSON review of *code*.

    With *number_lines*, each line carries its number so the reviewer
    can cite locations the way the syntax validator does.
    """
    if number_lines:
        header = "Code to review (line numbers are not part of the code):"
        body = add_line_numbers(code)
    else:
        header = "Code to review:"
        body = code
    prompt = (
        f"Review the following {language} code for issues.\n\n"
        f"{REVIEW_INSTRUCTIONS}\n\n"
        f"{header}\n```{language}\n{body}\n```"
    )
    if context:
        prompt += "\n\nContext:\n" + json.dumps(dict(context), indent=2, default=str)
    return prompt
