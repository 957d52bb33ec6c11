"""ValidationCoordinator -- a composite validator running a pipeline.

Validators run in ascending priority order. The merged report is valid
only if every validator that ran returned a valid report. By default
the pipeline stops at the first failing validator and results are
cached by candidate content.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from typing import TYPE_CHECKING, Iterable

from steerloop.exceptions import ValidatorFailure
from steerloop.models.report import ValidationReport

if TYPE_CHECKING:
    from steerloop.models.request import Candidate
    from steerloop.protocols import PipelineValidator

logger = logging.getLogger(__name__)

NO_VALIDATORS_WARNING = "No validators configured"


class ValidationCoordinator:
    """Run several PipelineValidators and merge their reports.

    Implements the Validator protocol, so it can be handed straight to
    the loop.

    Args:
        validators: Initial validators (any order; sorted by priority).
        stop_on_first_failure: Stop after the first invalid report.
        cache_results: Reuse the merged report for identical candidates.
        capture_errors: Turn a crashing member validator into an invalid
            report instead of raising ValidatorFailure.

    Usage::

        coordinator = ValidationCoordinator([
            PythonSyntaxValidator(),
            CommandValidator.ruff(),
        ])
        report = coordinator.validate(Candidate("x = 1\\n"))
    """

    def __init__(
        self,
        validators: Iterable[PipelineValidator] = (),
        *,
        stop_on_first_failure: bool = True,
        cache_results: bool = True,
        capture_errors: bool = False,
    ) -> None:
        self._validators: list[PipelineValidator] = []
        self.stop_on_first_failure = stop_on_first_failure
        self.cache_results = cache_results
        self.capture_errors = capture_errors
        self._cache: dict[str, ValidationReport] = {}
        self._lock = threading.Lock()
        self.add_validators(validators)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @property
    def validators(self) -> tuple[PipelineValidator, ...]:
        return tuple(self._validators)

    def add_validator(self, validator: PipelineValidator) -> ValidationCoordinator:
        with self._lock:
            self._validators.append(validator)
            # list.sort is stable: equal priorities keep insertion order
            self._validators.sort(key=lambda v: v.priority)
            self._cache.clear()
        logger.debug("Added validator %s (priority %d)", validator.name, validator.priority)
        return self

    def add_validators(self, validators: Iterable[PipelineValidator]) -> ValidationCoordinator:
        for validator in validators:
            self.add_validator(validator)
        return self

    def remove_validator(self, name: str) -> ValidationCoordinator:
        with self._lock:
            self._validators = [v for v in self._validators if v.name != name]
            self._cache.clear()
        return self

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.debug("Validation cache cleared")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, candidate: Candidate) -> ValidationReport:
        key = _cache_key(candidate) if self.cache_results else None
        if key is not None:
            with self._lock:
                cached = self._cache.get(key)
            if cached is not None:
                logger.debug("Using cached validation result")
                return cached

        validators = self.validators
        if not validators:
            logger.warning("No validators registered")
            return ValidationReport.success(warnings=[NO_VALIDATORS_WARNING])

        start = time.perf_counter()
        reports: list[ValidationReport] = []
        ran: list[str] = []

        for validator in validators:
            if not validator.can_handle(candidate):
                logger.debug("Validator %s cannot handle candidate, skipping", validator.name)
                continue

            report = self._run_one(validator, candidate)
            reports.append(report)
            ran.append(validator.name)

            if self.stop_on_first_failure and not report.valid:
                logger.info("Stopping validation on first failure: %s", validator.name)
                break

        merged = ValidationReport.success()
        for report in reports:
            merged = merged.merge(report)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        final = merged.with_metadata(
            validator_count=len(reports),
            validators=ran,
            duration_ms=duration_ms,
        )
        logger.info(
            "Validation completed: valid=%s errors=%d warnings=%d duration_ms=%.2f",
            final.valid,
            final.error_count,
            final.warning_count,
            duration_ms,
        )

        if key is not None:
            with self._lock:
                self._cache[key] = final
        return final

    def _run_one(self, validator: PipelineValidator, candidate: Candidate) -> ValidationReport:
        try:
            report = validator.validate(candidate)
        except Exception as exc:
            if not self.capture_errors:
                if isinstance(exc, ValidatorFailure):
                    if exc.validator_name is None:
                        exc.validator_name = validator.name
                    raise
                raise ValidatorFailure(str(exc), validator_name=validator.name) from exc
            logger.error("Validator %s raised: %s", validator.name, exc)
            return ValidationReport.failure(
                [f"Validator {validator.name} failed: {exc}"],
                metadata={"failed_validator": validator.name},
            )
        if not isinstance(report, ValidationReport):
            raise ValidatorFailure(
                f"expected ValidationReport, got {type(report).__name__}",
                validator_name=validator.name,
            )
        return report

    def __repr__(self) -> str:
        names = ", ".join(v.name for v in self._validators)
        return f"ValidationCoordinator([{names}])"


def _cache_key(candidate: Candidate) -> str:
    payload = json.dumps(
        {"content": str(candidate.content), "metadata": dict(candidate.metadata)},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
