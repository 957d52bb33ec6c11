"""steerloop exception hierarchy.

All steerloop-specific exceptions inherit from SteerLoopError.

Exhaustion and cancellation are NOT exceptions -- they are ordinary
LoopOutcome values (Exhausted, Aborted). Exceptions are reserved for
conditions the loop cannot absorb into a retry.
"""

from __future__ import annotations


class SteerLoopError(Exception):
    """Base exception for all steerloop errors."""


class InvalidConfigurationError(SteerLoopError, ValueError):
    """Raised when a RetryPolicy or request is misconfigured.

    Surfaced before the first generate call; never retried.
    """


class GenerationFailure(SteerLoopError):
    """A generator call failed.

    Absorbed into the retry budget under the default policy. Raised to
    the caller only when the policy says to abort on generator errors.
    The original exception is available as ``__cause__``.
    """

    def __init__(self, attempt: int, message: str) -> None:
        self.attempt = attempt
        super().__init__(f"Generator failed on attempt {attempt}: {message}")


class ValidatorFailure(SteerLoopError):
    """The validation mechanism itself is broken.

    Distinct from a candidate being invalid: a validator that raises
    cannot be trusted to gate anything, so the loop fails fast by default.
    """

    def __init__(
        self,
        message: str,
        *,
        attempt: int | None = None,
        validator_name: str | None = None,
    ) -> None:
        self.attempt = attempt
        self.validator_name = validator_name
        prefix = f"Validator {validator_name!r}" if validator_name else "Validator"
        where = f" on attempt {attempt}" if attempt is not None else ""
        super().__init__(f"{prefix} failed{where}: {message}")
