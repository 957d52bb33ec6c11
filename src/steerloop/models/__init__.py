"""Domain models for steerloop."""

from steerloop.models.outcome import Aborted, Exhausted, LoopOutcome, Success
from steerloop.models.policy import (
    GeneratorErrorMode,
    RetryPolicy,
    ValidatorErrorMode,
    constant_backoff,
    exponential_backoff,
    linear_backoff,
)
from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate, GenerationRequest

__all__ = [
    "GenerationRequest",
    "Candidate",
    "ValidationReport",
    "Success",
    "Exhausted",
    "Aborted",
    "LoopOutcome",
    "RetryPolicy",
    "GeneratorErrorMode",
    "ValidatorErrorMode",
    "constant_backoff",
    "linear_backoff",
    "exponential_backoff",
]
