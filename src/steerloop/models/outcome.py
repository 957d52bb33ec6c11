"""Terminal results of a loop invocation.

A run produces exactly one of Success, Exhausted or Aborted. Exhaustion
and cancellation are ordinary values carrying diagnostic history, not
exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate


@dataclass(frozen=True)
class Success:
    """A candidate passed validation.

    Attributes:
        candidate: The accepted candidate.
        report: Its (valid) validation report.
        attempts: Attempt number that succeeded (1 = first try).
        history: Every report in attempt order, ending with ``report``.
    """

    candidate: Candidate
    report: ValidationReport
    attempts: int
    history: tuple[ValidationReport, ...] = ()

    @property
    def succeeded(self) -> bool:
        return True

    @property
    def status(self) -> str:
        return "success"


@dataclass(frozen=True)
class Exhausted:
    """The retry budget was spent without a valid candidate."""

    last_report: ValidationReport
    attempts: int
    history: tuple[ValidationReport, ...]

    @property
    def succeeded(self) -> bool:
        return False

    @property
    def status(self) -> str:
        return "exhausted"

    @property
    def errors(self) -> list[str]:
        """All errors across attempts, in attempt order."""
        return [error for report in self.history for error in report.errors]


@dataclass(frozen=True)
class Aborted:
    """The run was cancelled at an attempt boundary."""

    reason: str
    attempts: int
    history: tuple[ValidationReport, ...] = ()

    @property
    def succeeded(self) -> bool:
        return False

    @property
    def status(self) -> str:
        return "aborted"


LoopOutcome = Union[Success, Exhausted, Aborted]
