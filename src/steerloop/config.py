"""Configuration models for steerloop.

LoopSettings holds user-facing settings (CLI flags, environment
variables) and converts them into a RetryPolicy.
"""

from __future__ import annotations

import enum
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from steerloop.exceptions import InvalidConfigurationError
from steerloop.models.policy import (
    GeneratorErrorMode,
    RetryPolicy,
    ValidatorErrorMode,
    constant_backoff,
    exponential_backoff,
    linear_backoff,
)

ENV_PREFIX = "STEERLOOP_"


class BackoffStrategy(str, enum.Enum):
    """How the wait between attempts grows."""

    NONE = "none"
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class LoopSettings(BaseModel):
    """Loop settings with documented defaults."""

    max_attempts: int = Field(default=3, ge=1)
    backoff_strategy: BackoffStrategy = BackoffStrategy.NONE
    backoff_seconds: float = Field(default=0.0, ge=0.0)
    backoff_max: Optional[float] = Field(default=30.0, gt=0.0)
    attempt_timeout: Optional[float] = Field(default=None, gt=0.0)
    abort_on_generator_error: bool = False
    invalid_on_validator_error: bool = False
    provider: str = "openai"
    model: Optional[str] = None
    db_path: str = ".steerloop.db"

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, *, prefix: str = ENV_PREFIX
    ) -> LoopSettings:
        """Build settings from ``<prefix><FIELD>`` environment variables.

        Unset variables keep their defaults. Pydantic coerces the strings
        ("3" -> 3, "true" -> True).
        """
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = env.get(f"{prefix}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)

    def backoff(self):
        """Backoff callable for the configured strategy, or None."""
        if self.backoff_strategy is BackoffStrategy.NONE or self.backoff_seconds == 0:
            return None
        if self.backoff_strategy is BackoffStrategy.CONSTANT:
            return constant_backoff(self.backoff_seconds)
        if self.backoff_strategy is BackoffStrategy.LINEAR:
            return linear_backoff(self.backoff_seconds, self.backoff_max)
        return exponential_backoff(self.backoff_seconds, 2.0, self.backoff_max)

    def to_policy(self) -> RetryPolicy:
        if self.backoff_strategy is not BackoffStrategy.NONE and self.backoff_seconds == 0:
            raise InvalidConfigurationError(
                f"backoff_strategy={self.backoff_strategy.value} needs backoff_seconds > 0"
            )
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff=self.backoff(),
            generator_errors=(
                GeneratorErrorMode.ABORT
                if self.abort_on_generator_error
                else GeneratorErrorMode.RETRY
            ),
            validator_errors=(
                ValidatorErrorMode.INVALID
                if self.invalid_on_validator_error
                else ValidatorErrorMode.RAISE
            ),
            attempt_timeout=self.attempt_timeout,
        )
