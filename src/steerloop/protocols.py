"""Protocol definitions for steerloop.

Defines the pluggable capabilities the loop is built around (Generator,
Validator), the richer PipelineValidator used by ValidationCoordinator,
and the LoopObserver base class invoked at attempt boundaries.

Collaborators are always injected into ``run(...)``; nothing here is
looked up from global state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from steerloop.models.outcome import LoopOutcome
    from steerloop.models.report import ValidationReport
    from steerloop.models.request import Candidate


@runtime_checkable
class Generator(Protocol):
    """Produces one candidate per call.

    ``feedback`` is None on the first attempt and carries the previous
    attempt's validation errors verbatim afterwards. May return a
    Candidate or bare content; the loop stamps provenance either way.
    """

    def generate(self, request: Any, feedback: Optional[str] = None) -> Any:
        ...


@runtime_checkable
class Validator(Protocol):
    """Judges one candidate.

    Returns a ValidationReport for both valid and invalid candidates.
    Raising means the validator itself is broken.
    """

    def validate(self, candidate: Candidate) -> ValidationReport:
        ...


@runtime_checkable
class PipelineValidator(Protocol):
    """A named, prioritized validator that can run inside a coordinator.

    Lower priority runs earlier.
    """

    name: str
    priority: int

    def can_handle(self, candidate: Candidate) -> bool:
        ...

    def validate(self, candidate: Candidate) -> ValidationReport:
        ...


class LoopObserver:
    """Synchronous hooks invoked by the loop at attempt boundaries.

    Subclass and override what you need; every method is a no-op by
    default. Exceptions raised here propagate to the caller of run().
    """

    def on_attempt(
        self, attempt: int, candidate: Candidate, report: ValidationReport
    ) -> None:
        """Called after each attempt's report is appended to history."""

    def on_retry(self, attempt: int, feedback: str) -> None:
        """Called when *attempt* failed and another attempt will follow."""

    def on_outcome(self, outcome: LoopOutcome) -> None:
        """Called once with the terminal outcome."""
