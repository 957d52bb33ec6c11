"""Feedback derivation: turns a failed report into generator guidance."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steerloop.models.policy import RetryPolicy
    from steerloop.models.report import ValidationReport
    from steerloop.models.request import Candidate

DEFAULT_DIAGNOSIS = "validation failed"


class Feedback(str):
    """Feedback text that remembers the candidate it describes.

    Behaves exactly like the feedback string; ``previous`` holds the failed
    candidate's content, or None when the attempt produced nothing (a
    generator error or a timeout). Generators that only want the text can
    ignore the attribute.
    """

    previous: Any

    def __new__(cls, text: str, previous: Any = None) -> Feedback:
        obj = super().__new__(cls, text)
        obj.previous = previous
        return obj


def format_feedback(report: ValidationReport) -> str:
    """Render a report's errors as a numbered list.

    Always returns a non-empty string: an invalid report without errors
    yields the generic diagnosis.

    Example::

        >>> format_feedback(ValidationReport.failure(["missing return", "bad indent"]))
        '1. missing return\\n2. bad indent'
    """
    if not report.errors:
        return DEFAULT_DIAGNOSIS
    return "\n".join(f"{i}. {error}" for i, error in enumerate(report.errors, start=1))


def derive_feedback(
    report: ValidationReport,
    policy: RetryPolicy,
    candidate: Candidate | None = None,
) -> Feedback:
    """Apply the policy's formatter, falling back to format_feedback()."""
    text = policy.feedback(report) if policy.feedback is not None else None
    if not text:
        text = format_feedback(report)
    previous = None
    if candidate is not None and not candidate.is_sentinel:
        previous = candidate.content
    return Feedback(text, previous)
