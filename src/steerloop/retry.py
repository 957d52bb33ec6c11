"""Validated generation loop -- bounded retry steered by validator feedback.

Provides ValidatedGenerationLoop (sync) and AsyncValidatedGenerationLoop,
plus the run_validated()/arun_validated() one-shot helpers.

Flow for each attempt:
    1. Stop with Aborted if the cancel token is set
    2. candidate = generator.generate(request, feedback)
    3. report = validator.validate(candidate)
    4. Append report to history
    5. If report.valid: return Success
    6. If attempt == max_attempts: return Exhausted
    7. feedback = format(report); optional backoff sleep; goto 1

Generator errors consume an attempt (or abort, per policy). Validator
errors propagate as ValidatorFailure (or count as invalid, per policy).
The loop keeps no state between runs; a single instance can serve
concurrent invocations as long as the collaborators are thread-safe.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from steerloop.exceptions import (
    GenerationFailure,
    InvalidConfigurationError,
    ValidatorFailure,
)
from steerloop.feedback import derive_feedback
from steerloop.models.outcome import Aborted, Exhausted, LoopOutcome, Success
from steerloop.models.policy import GeneratorErrorMode, RetryPolicy, ValidatorErrorMode
from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate

if TYPE_CHECKING:
    from steerloop.cancellation import CancellationToken
    from steerloop.protocols import LoopObserver

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "attempt timed out"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _check_request(request: Any) -> None:
    if request is None:
        raise InvalidConfigurationError("request must not be None")
    if isinstance(request, (str, bytes)) and not request.strip():
        raise InvalidConfigurationError("request must be non-empty")


def _resolve_policy(policy: RetryPolicy | None) -> RetryPolicy:
    if policy is None:
        return RetryPolicy()
    if not isinstance(policy, RetryPolicy):
        raise InvalidConfigurationError(
            f"policy must be a RetryPolicy, got {type(policy).__name__}"
        )
    policy.validate()
    return policy


def _resolve_generate(generator: Any) -> Callable[[Any, Optional[str]], Any]:
    """Accept an object with generate() or a plain callable."""
    method = getattr(generator, "generate", None)
    if callable(method):
        return method
    if callable(generator):
        return generator
    raise InvalidConfigurationError(
        f"{type(generator).__name__} has no generate() and is not callable"
    )


def _resolve_validate(validator: Any) -> Callable[[Candidate], Any]:
    """Accept an object with validate() or a plain callable."""
    method = getattr(validator, "validate", None)
    if callable(method):
        return method
    if callable(validator):
        return validator
    raise InvalidConfigurationError(
        f"{type(validator).__name__} has no validate() and is not callable"
    )


def _to_candidate(raw: Any, attempt: int) -> Candidate:
    if isinstance(raw, Candidate):
        return raw.stamped(attempt)
    return Candidate(content=raw, attempt=attempt)


def _generator_failure_report(exc: BaseException) -> ValidationReport:
    return ValidationReport.failure(
        [f"generation failed: {exc}"],
        metadata={"generator_error": type(exc).__name__},
    )


def _validator_failure_report(exc: BaseException) -> ValidationReport:
    return ValidationReport.failure(
        [f"validator failed: {exc}"],
        metadata={"validator_error": type(exc).__name__},
    )


def _timeout_report(seconds: float) -> ValidationReport:
    return ValidationReport.failure([TIMEOUT_ERROR], metadata={"timeout": seconds})


def _on_generator_error(
    exc: Exception, attempt: int, policy: RetryPolicy
) -> tuple[Candidate, ValidationReport]:
    if policy.generator_errors is GeneratorErrorMode.ABORT:
        raise GenerationFailure(attempt, str(exc)) from exc
    logger.warning(
        "Generator failed on attempt %d (%s: %s); counting as failed attempt",
        attempt,
        type(exc).__name__,
        exc,
    )
    return Candidate.sentinel(attempt, exc), _generator_failure_report(exc)


def _on_validator_error(
    exc: Exception, candidate: Candidate, attempt: int, policy: RetryPolicy
) -> tuple[Candidate, ValidationReport]:
    if policy.validator_errors is ValidatorErrorMode.RAISE:
        if isinstance(exc, ValidatorFailure):
            if exc.attempt is None:
                exc.attempt = attempt
            raise exc
        raise ValidatorFailure(str(exc), attempt=attempt) from exc
    logger.warning(
        "Validator failed on attempt %d (%s: %s); counting as invalid",
        attempt,
        type(exc).__name__,
        exc,
    )
    return candidate, _validator_failure_report(exc)


def _check_report(result: Any, attempt: int) -> ValidationReport:
    if not isinstance(result, ValidationReport):
        raise ValidatorFailure(
            f"expected ValidationReport, got {type(result).__name__}",
            attempt=attempt,
        )
    return result


class _LoopBase:
    """Observer plumbing and terminal-state decisions shared by both loops."""

    def __init__(self, observer: LoopObserver | None = None) -> None:
        self._observer = observer

    def _aborted(
        self, token: CancellationToken, attempt: int, history: list[ValidationReport]
    ) -> Aborted:
        reason = token.reason or "cancelled"
        logger.info("Loop cancelled before attempt %d: %s", attempt, reason)
        return Aborted(reason=reason, attempts=attempt - 1, history=tuple(history))

    def _record(
        self,
        attempt: int,
        candidate: Candidate,
        report: ValidationReport,
        history: list[ValidationReport],
        policy: RetryPolicy,
    ) -> LoopOutcome | None:
        """Append the report and return an outcome if the loop must stop."""
        history.append(report)
        logger.debug(
            "Attempt %d/%d: %s (%d error(s))",
            attempt,
            policy.max_attempts,
            "valid" if report.valid else "invalid",
            report.error_count,
        )
        if self._observer is not None:
            self._observer.on_attempt(attempt, candidate, report)

        if report.valid:
            return Success(
                candidate=candidate,
                report=report,
                attempts=attempt,
                history=tuple(history),
            )
        if attempt >= policy.max_attempts:
            logger.info("Retry budget exhausted after %d attempt(s)", attempt)
            return Exhausted(last_report=report, attempts=attempt, history=tuple(history))
        return None

    def _next_feedback(
        self, attempt: int, candidate: Candidate, report: ValidationReport, policy: RetryPolicy
    ) -> str:
        feedback = derive_feedback(report, policy, candidate)
        if self._observer is not None:
            self._observer.on_retry(attempt, feedback)
        return feedback

    def _finish(self, outcome: LoopOutcome) -> LoopOutcome:
        if self._observer is not None:
            self._observer.on_outcome(outcome)
        return outcome


# ---------------------------------------------------------------------------
# Sync loop
# ---------------------------------------------------------------------------


class ValidatedGenerationLoop(_LoopBase):
    """Bounded-retry generation against a validation gate.

    Usage::

        loop = ValidatedGenerationLoop(observer=LoggingObserver())
        outcome = loop.run(
            GenerationRequest("parse an ISO date"),
            generator=LLMGenerator(client),
            validator=ValidationCoordinator([PythonSyntaxValidator()]),
            policy=RetryPolicy(max_attempts=3),
        )
        if outcome.succeeded:
            print(outcome.candidate.content)
    """

    def __init__(
        self,
        observer: LoopObserver | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(observer)
        self._sleep = sleep

    def run(
        self,
        request: Any,
        generator: Any,
        validator: Any,
        policy: RetryPolicy | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> LoopOutcome:
        """Run the loop to a terminal outcome.

        Args:
            request: Non-empty request handed verbatim to the generator.
            generator: Object with generate(request, feedback) or a callable.
            validator: Object with validate(candidate) or a callable.
            policy: RetryPolicy (defaults to RetryPolicy()).
            cancel_token: Optional token checked before each attempt.

        Returns:
            Success, Exhausted or Aborted.

        Raises:
            InvalidConfigurationError: Bad policy or empty request.
            GenerationFailure: Generator raised under GeneratorErrorMode.ABORT.
            ValidatorFailure: Validator raised under ValidatorErrorMode.RAISE.
        """
        policy = _resolve_policy(policy)
        _check_request(request)
        generate = _resolve_generate(generator)
        validate = _resolve_validate(validator)

        history: list[ValidationReport] = []
        feedback: str | None = None

        for attempt in range(1, policy.max_attempts + 1):
            if cancel_token is not None and cancel_token.cancelled:
                return self._finish(self._aborted(cancel_token, attempt, history))

            candidate, report = self._run_attempt(
                generate, validate, request, feedback, attempt, policy
            )
            outcome = self._record(attempt, candidate, report, history, policy)
            if outcome is not None:
                return self._finish(outcome)

            feedback = self._next_feedback(attempt, candidate, report, policy)
            delay = policy.delay_for(attempt)
            if delay > 0:
                logger.debug("Backing off %.2fs before attempt %d", delay, attempt + 1)
                self._sleep(delay)

        # Unreachable: the last iteration always returns Exhausted or Success.
        raise AssertionError("loop exited without an outcome")

    def _run_attempt(
        self,
        generate: Callable[[Any, Optional[str]], Any],
        validate: Callable[[Candidate], Any],
        request: Any,
        feedback: str | None,
        attempt: int,
        policy: RetryPolicy,
    ) -> tuple[Candidate, ValidationReport]:
        if policy.attempt_timeout is None:
            return self._attempt(generate, validate, request, feedback, attempt, policy)

        # A fresh single-worker pool per attempt so a hung call never
        # queues the next attempt behind it.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="steerloop-attempt")
        abandoned = threading.Event()
        try:
            future = executor.submit(
                self._attempt,
                generate,
                validate,
                request,
                feedback,
                attempt,
                policy,
                abandoned=abandoned,
            )
            try:
                return future.result(timeout=policy.attempt_timeout)
            except FutureTimeoutError:
                # The worker cannot be interrupted; it checks this flag
                # once generate() returns and skips validation.
                abandoned.set()
                logger.warning(
                    "Attempt %d timed out after %.2fs", attempt, policy.attempt_timeout
                )
                return (
                    Candidate.sentinel(attempt, TimeoutError(TIMEOUT_ERROR)),
                    _timeout_report(policy.attempt_timeout),
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _attempt(
        generate: Callable[[Any, Optional[str]], Any],
        validate: Callable[[Candidate], Any],
        request: Any,
        feedback: str | None,
        attempt: int,
        policy: RetryPolicy,
        *,
        abandoned: threading.Event | None = None,
    ) -> tuple[Candidate, ValidationReport]:
        try:
            raw = generate(request, feedback)
        except Exception as exc:
            if abandoned is not None and abandoned.is_set():
                return Candidate.sentinel(attempt, exc), _timeout_report(policy.attempt_timeout)
            return _on_generator_error(exc, attempt, policy)

        candidate = _to_candidate(raw, attempt)
        if abandoned is not None and abandoned.is_set():
            logger.debug("Attempt %d finished after its timeout; not validating", attempt)
            return candidate, _timeout_report(policy.attempt_timeout)
        try:
            result = validate(candidate)
            return candidate, _check_report(result, attempt)
        except Exception as exc:
            return _on_validator_error(exc, candidate, attempt, policy)


# ---------------------------------------------------------------------------
# Async loop
# ---------------------------------------------------------------------------


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class AsyncValidatedGenerationLoop(_LoopBase):
    """Async rendition of ValidatedGenerationLoop.

    generate() and validate() may be coroutine functions or plain
    functions; awaitable results are awaited. The per-attempt timeout
    uses asyncio.wait_for, which cancels the timed-out coroutine.
    """

    def __init__(
        self,
        observer: LoopObserver | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(observer)
        self._sleep = sleep

    async def run(
        self,
        request: Any,
        generator: Any,
        validator: Any,
        policy: RetryPolicy | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> LoopOutcome:
        """Async counterpart of ValidatedGenerationLoop.run()."""
        policy = _resolve_policy(policy)
        _check_request(request)
        generate = _resolve_generate(generator)
        validate = _resolve_validate(validator)

        history: list[ValidationReport] = []
        feedback: str | None = None

        for attempt in range(1, policy.max_attempts + 1):
            if cancel_token is not None and cancel_token.cancelled:
                return self._finish(self._aborted(cancel_token, attempt, history))

            if policy.attempt_timeout is None:
                candidate, report = await self._attempt(
                    generate, validate, request, feedback, attempt, policy
                )
            else:
                try:
                    candidate, report = await asyncio.wait_for(
                        self._attempt(generate, validate, request, feedback, attempt, policy),
                        timeout=policy.attempt_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "Attempt %d timed out after %.2fs", attempt, policy.attempt_timeout
                    )
                    candidate = Candidate.sentinel(attempt, TimeoutError(TIMEOUT_ERROR))
                    report = _timeout_report(policy.attempt_timeout)

            outcome = self._record(attempt, candidate, report, history, policy)
            if outcome is not None:
                return self._finish(outcome)

            feedback = self._next_feedback(attempt, candidate, report, policy)
            delay = policy.delay_for(attempt)
            if delay > 0:
                logger.debug("Backing off %.2fs before attempt %d", delay, attempt + 1)
                await self._sleep(delay)

        raise AssertionError("loop exited without an outcome")

    @staticmethod
    async def _attempt(
        generate: Callable[[Any, Optional[str]], Any],
        validate: Callable[[Candidate], Any],
        request: Any,
        feedback: str | None,
        attempt: int,
        policy: RetryPolicy,
    ) -> tuple[Candidate, ValidationReport]:
        try:
            raw = await _maybe_await(generate(request, feedback))
        except Exception as exc:
            return _on_generator_error(exc, attempt, policy)

        candidate = _to_candidate(raw, attempt)
        try:
            result = await _maybe_await(validate(candidate))
            return candidate, _check_report(result, attempt)
        except Exception as exc:
            return _on_validator_error(exc, candidate, attempt, policy)


# ---------------------------------------------------------------------------
# One-shot helpers
# ---------------------------------------------------------------------------


def run_validated(
    request: Any,
    generator: Any,
    validator: Any,
    policy: RetryPolicy | None = None,
    *,
    observer: LoopObserver | None = None,
    cancel_token: CancellationToken | None = None,
) -> LoopOutcome:
    """Run a ValidatedGenerationLoop once."""
    return ValidatedGenerationLoop(observer).run(
        request, generator, validator, policy, cancel_token=cancel_token
    )


async def arun_validated(
    request: Any,
    generator: Any,
    validator: Any,
    policy: RetryPolicy | None = None,
    *,
    observer: LoopObserver | None = None,
    cancel_token: CancellationToken | None = None,
) -> LoopOutcome:
    """Run an AsyncValidatedGenerationLoop once."""
    return await AsyncValidatedGenerationLoop(observer).run(
        request, generator, validator, policy, cancel_token=cancel_token
    )
