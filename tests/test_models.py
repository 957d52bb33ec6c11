"""Tests for steerloop domain models.

Tests cover:
- ValidationReport: construction, immutability, merge, serialization
- GenerationRequest / Candidate: validation, provenance stamping, sentinels
- Outcomes: status flags and error flattening
- RetryPolicy: validation and backoff helpers
"""

from __future__ import annotations

import dataclasses

import pytest

from steerloop.exceptions import InvalidConfigurationError
from steerloop.models import (
    Aborted,
    Candidate,
    Exhausted,
    GenerationRequest,
    RetryPolicy,
    Success,
    ValidationReport,
    constant_backoff,
    exponential_backoff,
    linear_backoff,
)


# ---------------------------------------------------------------------------
# ValidationReport
# ---------------------------------------------------------------------------


class TestValidationReport:
    def test_success_factory(self):
        report = ValidationReport.success(warnings=["style"], metadata={"k": 1})
        assert report.valid
        assert report.errors == ()
        assert report.warnings == ("style",)
        assert report.metadata["k"] == 1

    def test_failure_factory(self):
        report = ValidationReport.failure(["a", "b"])
        assert not report.valid
        assert report.errors == ("a", "b")
        assert report.error_count == 2
        assert report.warning_count == 0

    def test_lists_frozen_into_tuples(self):
        errors = ["one"]
        report = ValidationReport(valid=False, errors=errors)
        errors.append("two")
        assert report.errors == ("one",)

    def test_frozen(self):
        report = ValidationReport.success()
        with pytest.raises(dataclasses.FrozenInstanceError):
            report.valid = False  # type: ignore[misc]

    def test_metadata_read_only(self):
        report = ValidationReport.success(metadata={"a": 1})
        with pytest.raises(TypeError):
            report.metadata["a"] = 2  # type: ignore[index]

    def test_merge_both_valid(self):
        merged = ValidationReport.success(warnings=["w1"]).merge(
            ValidationReport.success(warnings=["w2"])
        )
        assert merged.valid
        assert merged.warnings == ("w1", "w2")

    def test_merge_any_invalid(self):
        merged = ValidationReport.success().merge(ValidationReport.failure(["x"]))
        assert not merged.valid
        assert merged.errors == ("x",)

    def test_merge_metadata_later_wins(self):
        merged = ValidationReport.success(metadata={"a": 1, "b": 1}).merge(
            ValidationReport.success(metadata={"b": 2})
        )
        assert dict(merged.metadata) == {"a": 1, "b": 2}

    def test_with_metadata_returns_copy(self):
        report = ValidationReport.failure(["e"])
        tagged = report.with_metadata(duration_ms=1.5)
        assert tagged.metadata["duration_ms"] == 1.5
        assert "duration_ms" not in report.metadata
        assert tagged.errors == report.errors

    def test_dict_round_trip(self):
        report = ValidationReport.failure(["e"], warnings=["w"], metadata={"n": 3})
        restored = ValidationReport.from_dict(report.to_dict())
        assert restored == report

    def test_repr(self):
        assert repr(ValidationReport.failure(["a"])) == "ValidationReport(invalid, errors=1, warnings=0)"

    def test_hashable_with_metadata(self):
        first = ValidationReport.failure(["a"], metadata={"k": 1})
        second = ValidationReport.failure(["a"], metadata={"k": 1})
        assert hash(first) == hash(second)
        assert len({first, second}) == 1


# ---------------------------------------------------------------------------
# Requests and candidates
# ---------------------------------------------------------------------------


class TestGenerationRequest:
    def test_defaults(self):
        request = GenerationRequest("reverse a list")
        assert request.language == "python"
        assert dict(request.context) == {}
        assert str(request) == "reverse a list"

    @pytest.mark.parametrize("task", ["", "   ", None])
    def test_empty_task_rejected(self, task):
        with pytest.raises(InvalidConfigurationError):
            GenerationRequest(task)  # type: ignore[arg-type]

    def test_context_read_only(self):
        request = GenerationRequest("t", context={"style": "pep8"})
        with pytest.raises(TypeError):
            request.context["style"] = "other"  # type: ignore[index]


class TestCandidate:
    def test_stamped_sets_attempt(self):
        original = Candidate("x", attempt=1, metadata={"model": "m"})
        stamped = original.stamped(3)
        assert stamped.attempt == 3
        assert stamped.metadata["model"] == "m"
        assert original.attempt == 1
        assert stamped.created_at >= original.created_at

    def test_created_at_is_utc(self):
        assert Candidate("x").created_at.tzinfo is not None

    def test_sentinel(self):
        sentinel = Candidate.sentinel(2, RuntimeError("boom"))
        assert sentinel.is_sentinel
        assert sentinel.content == ""
        assert sentinel.attempt == 2
        assert sentinel.metadata["error"] == "boom"
        assert sentinel.metadata["error_type"] == "RuntimeError"

    def test_regular_candidate_not_sentinel(self):
        assert not Candidate("x").is_sentinel

    def test_repr_truncates(self):
        text = repr(Candidate("a" * 100))
        assert "..." in text
        assert len(text) < 80

    def test_hashable_with_metadata(self):
        candidate = Candidate("x", metadata={"model": "m"})
        assert hash(candidate) == hash(candidate)
        assert isinstance(hash(GenerationRequest("t", context={"style": "pep8"})), int)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class TestOutcomes:
    def test_success(self):
        report = ValidationReport.success()
        outcome = Success(candidate=Candidate("x"), report=report, attempts=1, history=(report,))
        assert outcome.succeeded
        assert outcome.status == "success"

    def test_exhausted_flattens_errors(self):
        history = (ValidationReport.failure(["a"]), ValidationReport.failure(["b", "c"]))
        outcome = Exhausted(last_report=history[-1], attempts=2, history=history)
        assert not outcome.succeeded
        assert outcome.status == "exhausted"
        assert outcome.errors == ["a", "b", "c"]

    def test_aborted(self):
        outcome = Aborted(reason="shutdown", attempts=0)
        assert not outcome.succeeded
        assert outcome.status == "aborted"
        assert outcome.history == ()


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.backoff is None
        assert policy.attempt_timeout is None
        assert policy.delay_for(1) == 0.0

    @pytest.mark.parametrize("value", [0, -1, True, "3", 1.0])
    def test_bad_max_attempts(self, value):
        with pytest.raises(InvalidConfigurationError):
            RetryPolicy(max_attempts=value)

    def test_backoff_must_be_callable(self):
        with pytest.raises(InvalidConfigurationError):
            RetryPolicy(backoff=2.0)  # type: ignore[arg-type]

    def test_feedback_must_be_callable(self):
        with pytest.raises(InvalidConfigurationError):
            RetryPolicy(feedback="errors")  # type: ignore[arg-type]

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(generator_errors="explode")  # type: ignore[arg-type]

    def test_negative_delay_clamped(self):
        assert RetryPolicy(backoff=lambda attempt: -5).delay_for(1) == 0.0


class TestBackoffHelpers:
    def test_constant(self):
        backoff = constant_backoff(1.5)
        assert [backoff(n) for n in (1, 2, 5)] == [1.5, 1.5, 1.5]

    def test_linear_with_cap(self):
        backoff = linear_backoff(2.0, maximum=5.0)
        assert [backoff(n) for n in (1, 2, 3)] == [2.0, 4.0, 5.0]

    def test_exponential_with_cap(self):
        backoff = exponential_backoff(1.0, 2.0, maximum=5.0)
        assert [backoff(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_exponential_uncapped(self):
        backoff = exponential_backoff(0.5, 3.0, maximum=None)
        assert backoff(3) == 4.5

    def test_negative_values_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            constant_backoff(-1)
        with pytest.raises(InvalidConfigurationError):
            linear_backoff(-1)
        with pytest.raises(InvalidConfigurationError):
            exponential_backoff(1.0, 0.5)
