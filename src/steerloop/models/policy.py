"""Retry policy configuration and backoff helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from steerloop.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    from steerloop.models.report import ValidationReport


class GeneratorErrorMode(str, enum.Enum):
    """What the loop does when ``generate`` raises."""

    RETRY = "retry"
    ABORT = "abort"


class ValidatorErrorMode(str, enum.Enum):
    """What the loop does when ``validate`` raises."""

    RAISE = "raise"
    INVALID = "invalid"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds and failure handling for one loop invocation.

    Attributes:
        max_attempts: Total attempts allowed, including the first (>= 1).
        backoff: Optional function mapping the failed attempt number to
            seconds to sleep before the next attempt.
        generator_errors: RETRY consumes an attempt with a synthetic
            invalid report; ABORT raises GenerationFailure.
        validator_errors: RAISE propagates ValidatorFailure immediately;
            INVALID records the crash as an invalid report.
        attempt_timeout: Seconds allowed for each generate+validate pair,
            or None for no limit.
        feedback: Optional formatter turning a failed report into the
            feedback string. Defaults to a numbered error list.
    """

    max_attempts: int = 3
    backoff: Optional[Callable[[int], float]] = None
    generator_errors: GeneratorErrorMode = GeneratorErrorMode.RETRY
    validator_errors: ValidatorErrorMode = ValidatorErrorMode.RAISE
    attempt_timeout: Optional[float] = None
    feedback: Optional[Callable[[ValidationReport], str]] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "generator_errors", GeneratorErrorMode(self.generator_errors)
        )
        object.__setattr__(
            self, "validator_errors", ValidatorErrorMode(self.validator_errors)
        )
        self.validate()

    def validate(self) -> None:
        """Raise InvalidConfigurationError if any field is out of range."""
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise InvalidConfigurationError(
                f"max_attempts must be an integer, got {self.max_attempts!r}"
            )
        if self.max_attempts < 1:
            raise InvalidConfigurationError(
                f"max_attempts must be >= 1, got {self.max_attempts}"
            )
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            raise InvalidConfigurationError(
                f"attempt_timeout must be positive, got {self.attempt_timeout}"
            )
        if self.backoff is not None and not callable(self.backoff):
            raise InvalidConfigurationError("backoff must be callable")
        if self.feedback is not None and not callable(self.feedback):
            raise InvalidConfigurationError("feedback must be callable")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed *attempt* (0.0 without backoff)."""
        if self.backoff is None:
            return 0.0
        return max(0.0, float(self.backoff(attempt)))


# ---------------------------------------------------------------------------
# Backoff helpers -- pure functions of the attempt number, no jitter
# ---------------------------------------------------------------------------


def constant_backoff(seconds: float) -> Callable[[int], float]:
    """Wait the same number of seconds after every failed attempt."""
    if seconds < 0:
        raise InvalidConfigurationError("backoff seconds must be >= 0")

    def _backoff(attempt: int) -> float:
        return seconds

    return _backoff


def linear_backoff(step: float, maximum: float | None = None) -> Callable[[int], float]:
    """Wait ``step * attempt`` seconds, capped at *maximum*."""
    if step < 0:
        raise InvalidConfigurationError("backoff step must be >= 0")

    def _backoff(attempt: int) -> float:
        delay = step * attempt
        return min(delay, maximum) if maximum is not None else delay

    return _backoff


def exponential_backoff(
    initial: float = 1.0,
    multiplier: float = 2.0,
    maximum: float | None = 30.0,
) -> Callable[[int], float]:
    """Wait ``initial * multiplier ** (attempt - 1)`` seconds, capped at *maximum*."""
    if initial < 0 or multiplier < 1:
        raise InvalidConfigurationError(
            "exponential backoff needs initial >= 0 and multiplier >= 1"
        )

    def _backoff(attempt: int) -> float:
        delay = initial * multiplier ** (attempt - 1)
        return min(delay, maximum) if maximum is not None else delay

    return _backoff
