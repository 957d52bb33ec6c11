"""Python syntax validator."""

from __future__ import annotations

import ast
import threading
import warnings

from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate

# warnings.catch_warnings() swaps process-wide state; validations that
# record warnings must not overlap.
_WARNINGS_LOCK = threading.Lock()


class PythonSyntaxValidator:
    """Reject candidates that do not parse as Python source.

    SyntaxWarnings raised while compiling become report warnings. Safe to
    call from several threads at once.
    """

    name = "python_syntax"

    def __init__(self, *, priority: int = 10, filename: str = "<candidate>") -> None:
        self.priority = priority
        self.filename = filename

    def can_handle(self, candidate: Candidate) -> bool:
        return isinstance(candidate.content, str)

    def validate(self, candidate: Candidate) -> ValidationReport:
        source = candidate.content
        metadata = {"validator": self.name}

        if not source.strip():
            return ValidationReport.failure(["empty source"], metadata=metadata)

        with _WARNINGS_LOCK, warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                tree = ast.parse(source, filename=self.filename)
                compile(tree, self.filename, "exec")
            except SyntaxError as exc:
                return ValidationReport.failure(
                    [_describe(exc)],
                    warnings=_warning_messages(caught),
                    metadata={**metadata, "lineno": exc.lineno, "offset": exc.offset},
                )
            except ValueError as exc:  # e.g. null bytes on older interpreters
                return ValidationReport.failure([str(exc)], metadata=metadata)

        return ValidationReport.success(
            warnings=_warning_messages(caught),
            metadata={**metadata, "statements": len(tree.body)},
        )


def _describe(exc: SyntaxError) -> str:
    if exc.lineno is None:
        return exc.msg
    return f"line {exc.lineno}: {exc.msg}"


def _warning_messages(caught: list[warnings.WarningMessage]) -> list[str]:
    messages = []
    for w in caught:
        if issubclass(w.category, (SyntaxWarning, DeprecationWarning)):
            messages.append(f"line {w.lineno}: {w.message}")
    return messages
