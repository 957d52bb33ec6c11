"""Tests for AsyncValidatedGenerationLoop and arun_validated()."""

from __future__ import annotations

import asyncio

import pytest

from steerloop.cancellation import CancellationToken
from steerloop.exceptions import GenerationFailure, InvalidConfigurationError, ValidatorFailure
from steerloop.models import (
    Aborted,
    Exhausted,
    GeneratorErrorMode,
    RetryPolicy,
    Success,
    ValidationReport,
)
from steerloop.observers import HistoryObserver
from steerloop.retry import AsyncValidatedGenerationLoop, arun_validated
from tests.conftest import ScriptedGenerator, ScriptedValidator, bad, ok


class AsyncScriptedGenerator(ScriptedGenerator):
    async def generate(self, request, feedback=None):
        await asyncio.sleep(0)
        return super().generate(request, feedback)


class AsyncScriptedValidator(ScriptedValidator):
    async def validate(self, candidate):
        await asyncio.sleep(0)
        return super().validate(candidate)


def _run(gen, val, policy=None, **kwargs):
    loop = AsyncValidatedGenerationLoop(**kwargs)
    return asyncio.run(loop.run("write code", gen, val, policy))


# ---------------------------------------------------------------------------
# Core behaviour
# ---------------------------------------------------------------------------


class TestAsyncLoop:
    def test_exhausts_budget(self):
        gen = AsyncScriptedGenerator()
        val = AsyncScriptedValidator([bad("syntax error")])

        outcome = _run(gen, val, RetryPolicy(max_attempts=3))

        assert isinstance(outcome, Exhausted)
        assert outcome.attempts == 3
        assert [r.errors for r in outcome.history] == [("syntax error",)] * 3

    def test_success_on_second_attempt(self):
        gen = AsyncScriptedGenerator(["bad", "good"])
        val = AsyncScriptedValidator([bad("short"), ok()])

        outcome = _run(gen, val)

        assert isinstance(outcome, Success)
        assert outcome.candidate.content == "good"
        assert gen.feedbacks == [None, "1. short"]

    def test_sync_collaborators_accepted(self):
        outcome = _run(ScriptedGenerator(), ScriptedValidator([bad(), ok()]))
        assert outcome.succeeded
        assert outcome.attempts == 2

    def test_mixed_sync_and_async(self):
        outcome = _run(AsyncScriptedGenerator(), ScriptedValidator([ok()]))
        assert outcome.succeeded

    def test_invalid_request_rejected(self):
        loop = AsyncValidatedGenerationLoop()
        with pytest.raises(InvalidConfigurationError):
            asyncio.run(loop.run("", ScriptedGenerator(), ScriptedValidator()))

    def test_arun_validated_helper(self):
        observer = HistoryObserver()
        outcome = asyncio.run(
            arun_validated(
                "task",
                AsyncScriptedGenerator(),
                AsyncScriptedValidator([bad("e"), ok()]),
                observer=observer,
            )
        )
        assert outcome.succeeded
        assert observer.kinds == ["attempt", "retry", "attempt", "outcome"]


# ---------------------------------------------------------------------------
# Error modes
# ---------------------------------------------------------------------------


class TestAsyncErrorModes:
    def test_generator_error_consumes_attempt(self):
        gen = AsyncScriptedGenerator([RuntimeError("down"), "ok"])

        outcome = _run(gen, AsyncScriptedValidator([ok()]))

        assert outcome.succeeded
        assert outcome.attempts == 2
        assert "down" in outcome.history[0].errors[0]

    def test_generator_abort(self):
        gen = AsyncScriptedGenerator([RuntimeError("down")])
        with pytest.raises(GenerationFailure):
            _run(gen, AsyncScriptedValidator(), RetryPolicy(generator_errors=GeneratorErrorMode.ABORT))

    def test_validator_crash_raises(self):
        with pytest.raises(ValidatorFailure):
            _run(AsyncScriptedGenerator(), AsyncScriptedValidator([ValueError("broken")]))


# ---------------------------------------------------------------------------
# Backoff, timeout, cancellation
# ---------------------------------------------------------------------------


class TestAsyncControl:
    def test_backoff_awaited(self):
        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        policy = RetryPolicy(max_attempts=3, backoff=lambda attempt: 0.25)
        _run(AsyncScriptedGenerator(), AsyncScriptedValidator([bad()]), policy, sleep=fake_sleep)

        assert sleeps == [0.25, 0.25]

    def test_timeout_consumes_attempt(self):
        calls: list[str | None] = []

        async def generate(request, feedback):
            calls.append(feedback)
            if len(calls) == 1:
                await asyncio.sleep(5)
            return "x"

        outcome = _run(generate, AsyncScriptedValidator([ok()]), RetryPolicy(attempt_timeout=0.05))

        assert outcome.succeeded
        assert outcome.attempts == 2
        assert outcome.history[0].errors == ("attempt timed out",)

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel("stop")
        gen = AsyncScriptedGenerator()

        outcome = asyncio.run(
            AsyncValidatedGenerationLoop().run("task", gen, AsyncScriptedValidator(), cancel_token=token)
        )

        assert isinstance(outcome, Aborted)
        assert outcome.attempts == 0
        assert gen.calls == []

    def test_concurrent_runs_share_loop(self):
        loop = AsyncValidatedGenerationLoop()

        async def main():
            return await asyncio.gather(
                loop.run("a", AsyncScriptedGenerator(), AsyncScriptedValidator([ok()])),
                loop.run("b", AsyncScriptedGenerator(), AsyncScriptedValidator([bad(), ok()])),
                loop.run("c", AsyncScriptedGenerator(), AsyncScriptedValidator([bad()]), RetryPolicy(max_attempts=2)),
            )

        a, b, c = asyncio.run(main())

        assert a.attempts == 1 and a.succeeded
        assert b.attempts == 2 and b.succeeded
        assert c.attempts == 2 and not c.succeeded
        assert all(isinstance(r, ValidationReport) for r in c.history)
