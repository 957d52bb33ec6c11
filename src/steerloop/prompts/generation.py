"""Code generation prompts.

Provides the system prompt and user prompt builders used by
LLMGenerator: one for the first attempt and one that carries the
previous attempt's validation feedback.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

GENERATION_SYSTEM_PROMPT: str = (
    "You are a careful software engineer. You write complete, working "
    "source files that satisfy the request exactly.\n\n"
    "Guidelines:\n"
    "- Return ONLY the code. No explanations, no markdown prose.\n"
    "- Prefer the standard library unless the request names a dependency.\n"
    "- Include docstrings where they help a reader.\n"
    "- When told a previous attempt failed validation, fix every listed "
    "error and return the complete corrected code."
)


def build_generation_prompt(
    task: str,
    *,
    language: str = "python",
    context: Mapping[str, Any] | None = None,
) -> str:
    """Build the user prompt for a first attempt."""
    parts = [f"Generate {language} code for the following request:\n\n{task}\n"]
    if context:
        parts.append(
            "Context:\n" + json.dumps(dict(context), indent=2, default=str) + "\n"
        )
    parts.append(f"Return ONLY the {language} code.")
    return "\n".join(parts)


def build_retry_prompt(
    task: str,
    feedback: str,
    *,
    language: str = "python",
    context: Mapping[str, Any] | None = None,
    previous_code: str | None = None,
) -> str:
    """Build the user prompt for an attempt after a validation failure.

    The feedback is included verbatim. When *previous_code* is given, the
    failed code is shown in a fenced block ahead of the errors.
    """
    parts = [build_generation_prompt(task, language=language, context=context)]
    if previous_code:
        parts.append(f"Previous code:\n```{language}\n{previous_code.rstrip()}\n```")
    parts.append(f"Your previous attempt failed validation with these errors:\n{feedback}")
    parts.append(f"Fix these errors and return the complete {language} code.")
    return "\n\n".join(parts)
