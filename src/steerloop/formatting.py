"""Helpers for turning raw LLM text into clean source code.

LLMs routinely wrap code in markdown fences, mix line endings and leave
trailing whitespace. clean_code() normalizes all of that so validators
see the code the model meant to write.
"""

from __future__ import annotations

import re

_FENCE_RE = re.compile(r"```[ \t]*([\w+#.-]*)[ \t]*\n(.*?)\n?```", re.DOTALL)


def extract_code_block(text: str, language: str | None = None) -> str | None:
    """Return the body of the first fenced code block.

    When *language* is given, a block tagged with that language is
    preferred over untagged or differently-tagged ones. Returns None if
    the text has no fenced block.
    """
    blocks = _FENCE_RE.findall(text)
    if not blocks:
        return None
    if language:
        for tag, body in blocks:
            if tag.lower() == language.lower():
                return body
    return blocks[0][1]


def clean_code(text: str, language: str | None = None) -> str:
    """Strip markdown fences and normalize whitespace.

    - Fenced block bodies replace the surrounding prose.
    - CRLF / CR line endings become LF.
    - Trailing whitespace is removed from every line.
    - The result ends with exactly one newline (or is empty).
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    block = extract_code_block(text, language)
    code = block if block is not None else text

    lines = [line.rstrip() for line in code.strip("\n").split("\n")]
    code = "\n".join(lines).strip("\n")
    return code + "\n" if code else ""


def add_line_numbers(code: str, start: int = 1) -> str:
    """Prefix each line with a right-aligned line number."""
    lines = code.split("\n")
    if lines and lines[-1] == "":
        lines = lines[:-1]
    width = len(str(start + len(lines) - 1)) if lines else 1
    return "\n".join(f"{n:>{width}} | {line}" for n, line in enumerate(lines, start=start))


def code_statistics(code: str) -> dict[str, int]:
    """Count total, blank, comment and code lines (``#`` comments)."""
    lines = code.splitlines()
    blank = sum(1 for line in lines if not line.strip())
    comment = sum(1 for line in lines if line.strip().startswith("#"))
    return {
        "total_lines": len(lines),
        "blank_lines": blank,
        "comment_lines": comment,
        "code_lines": len(lines) - blank - comment,
        "characters": len(code),
    }
