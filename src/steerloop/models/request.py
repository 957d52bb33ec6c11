"""Request and candidate models.

GenerationRequest describes what the caller wants generated; Candidate
is one generator output, stamped with its attempt provenance by the loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from steerloop.exceptions import InvalidConfigurationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GenerationRequest:
    """Opaque description of the desired output.

    The loop never interprets a request; it only hands it to the
    generator. ``context`` and ``language`` are conveniences for the
    built-in LLMGenerator.

    Example::

        request = GenerationRequest("Write a function that reverses a list")
    """

    task: str
    context: Mapping[str, Any] = field(default_factory=dict, hash=False)
    language: str = "python"

    def __post_init__(self) -> None:
        if not isinstance(self.task, str) or not self.task.strip():
            raise InvalidConfigurationError("GenerationRequest.task must be a non-empty string")
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    def __str__(self) -> str:
        return self.task


@dataclass(frozen=True)
class Candidate:
    """A generator-produced artifact for a single attempt.

    Attributes:
        content: Raw generator output (usually source text).
        attempt: 1-based attempt number that produced this candidate.
        created_at: UTC timestamp of when the loop received the output.
        metadata: Free-form provenance (model, usage, ...).
    """

    content: Any
    attempt: int = 1
    created_at: datetime = field(default_factory=_utcnow)
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @classmethod
    def sentinel(cls, attempt: int, error: BaseException | None = None) -> Candidate:
        """Empty placeholder recorded when the generator call failed."""
        metadata: dict[str, Any] = {"sentinel": True}
        if error is not None:
            metadata["error"] = str(error)
            metadata["error_type"] = type(error).__name__
        return cls(content="", attempt=attempt, metadata=metadata)

    @property
    def is_sentinel(self) -> bool:
        return bool(self.metadata.get("sentinel", False))

    def stamped(self, attempt: int) -> Candidate:
        """Return a copy carrying the loop's provenance for *attempt*."""
        return replace(self, attempt=attempt, created_at=_utcnow())

    def __repr__(self) -> str:
        text = str(self.content)
        if len(text) > 40:
            text = text[:37] + "..."
        return f"Candidate(attempt={self.attempt}, content={text!r})"
