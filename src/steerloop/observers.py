"""Built-in loop observers.

Provides ready-made observers for common needs: logging every attempt,
recording events in memory, and fanning out to several observers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from steerloop.protocols import LoopObserver

if TYPE_CHECKING:
    from steerloop.models.outcome import LoopOutcome
    from steerloop.models.report import ValidationReport
    from steerloop.models.request import Candidate

logger = logging.getLogger(__name__)


class LoggingObserver(LoopObserver):
    """Log attempts, retries and the outcome."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._log = log or logger
        self._level = level

    def on_attempt(self, attempt: int, candidate: Candidate, report: ValidationReport) -> None:
        self._log.log(
            self._level,
            "Attempt %d: %s (errors=%d, warnings=%d)",
            attempt,
            "valid" if report.valid else "invalid",
            report.error_count,
            report.warning_count,
        )

    def on_retry(self, attempt: int, feedback: str) -> None:
        self._log.log(self._level, "Retrying after attempt %d with feedback: %s", attempt, feedback)

    def on_outcome(self, outcome: LoopOutcome) -> None:
        self._log.log(
            self._level, "Loop finished: %s after %d attempt(s)", outcome.status, outcome.attempts
        )


@dataclass(frozen=True)
class ObservedEvent:
    """One recorded observer callback."""

    kind: str  # "attempt", "retry", "outcome"
    attempt: int
    payload: Any = None


class HistoryObserver(LoopObserver):
    """Record every callback in memory, in order."""

    def __init__(self) -> None:
        self.events: list[ObservedEvent] = []

    def on_attempt(self, attempt: int, candidate: Candidate, report: ValidationReport) -> None:
        self.events.append(ObservedEvent("attempt", attempt, report))

    def on_retry(self, attempt: int, feedback: str) -> None:
        self.events.append(ObservedEvent("retry", attempt, feedback))

    def on_outcome(self, outcome: LoopOutcome) -> None:
        self.events.append(ObservedEvent("outcome", outcome.attempts, outcome))

    @property
    def feedback(self) -> list[str]:
        return [e.payload for e in self.events if e.kind == "retry"]

    @property
    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]


class CompositeObserver(LoopObserver):
    """Forward each callback to several observers, in order."""

    def __init__(self, *observers: LoopObserver) -> None:
        self._observers = tuple(observers)

    def on_attempt(self, attempt: int, candidate: Candidate, report: ValidationReport) -> None:
        for obs in self._observers:
            obs.on_attempt(attempt, candidate, report)

    def on_retry(self, attempt: int, feedback: str) -> None:
        for obs in self._observers:
            obs.on_retry(attempt, feedback)

    def on_outcome(self, outcome: LoopOutcome) -> None:
        for obs in self._observers:
            obs.on_outcome(outcome)
