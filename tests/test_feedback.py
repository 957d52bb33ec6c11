"""Tests for feedback derivation and the built-in observers."""

from __future__ import annotations

import logging

from steerloop.feedback import DEFAULT_DIAGNOSIS, Feedback, derive_feedback, format_feedback
from steerloop.models import Candidate, RetryPolicy, ValidationReport
from steerloop.observers import CompositeObserver, HistoryObserver, LoggingObserver
from steerloop.retry import run_validated
from tests.conftest import ScriptedGenerator, ScriptedValidator, bad, ok


class TestFormatFeedback:
    def test_numbered_list(self):
        report = ValidationReport.failure(["missing return", "bad indent"])
        assert format_feedback(report) == "1. missing return\n2. bad indent"

    def test_single_error(self):
        assert format_feedback(bad("syntax error")) == "1. syntax error"

    def test_no_errors_uses_generic_diagnosis(self):
        assert format_feedback(ValidationReport(valid=False)) == DEFAULT_DIAGNOSIS

    def test_warnings_not_included(self):
        report = ValidationReport.failure(["e"], warnings=["w"])
        assert format_feedback(report) == "1. e"


class TestDeriveFeedback:
    def test_default_formatter(self):
        assert derive_feedback(bad("x"), RetryPolicy()) == "1. x"

    def test_custom_formatter(self):
        policy = RetryPolicy(feedback=lambda r: "; ".join(r.errors))
        assert derive_feedback(bad("a", "b"), policy) == "a; b"

    def test_empty_custom_result_falls_back(self):
        policy = RetryPolicy(feedback=lambda r: "")
        assert derive_feedback(bad("a"), policy) == "1. a"

    def test_carries_failed_candidate_content(self):
        feedback = derive_feedback(bad("x"), RetryPolicy(), Candidate("def f(:", attempt=1))
        assert isinstance(feedback, Feedback)
        assert feedback == "1. x"
        assert str(feedback) == "1. x"
        assert feedback.previous == "def f(:"

    def test_sentinel_candidate_has_no_previous(self):
        feedback = derive_feedback(bad("x"), RetryPolicy(), Candidate.sentinel(1, RuntimeError("down")))
        assert feedback.previous is None

    def test_loop_hands_previous_content_to_generator(self):
        seen = []

        def generate(request, feedback):
            seen.append(getattr(feedback, "previous", None))
            return f"draft {len(seen)}"

        run_validated("t", generate, ScriptedValidator([bad("e"), ok()]))

        assert seen == [None, "draft 1"]


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------


class TestObservers:
    def test_logging_observer(self, caplog):
        caplog.set_level(logging.INFO, logger="steerloop")

        run_validated(
            "task",
            ScriptedGenerator(),
            ScriptedValidator([bad("e"), ok()]),
            observer=LoggingObserver(),
        )

        messages = [r.getMessage() for r in caplog.records]
        assert any("Attempt 1: invalid" in m for m in messages)
        assert any("Retrying after attempt 1" in m for m in messages)
        assert any("Loop finished: success after 2 attempt(s)" in m for m in messages)

    def test_logging_observer_custom_logger_and_level(self, caplog):
        log = logging.getLogger("custom.loop")
        caplog.set_level(logging.DEBUG, logger="custom.loop")

        run_validated("task", ScriptedGenerator(), ScriptedValidator(), observer=LoggingObserver(log, logging.DEBUG))

        records = [r for r in caplog.records if r.name == "custom.loop"]
        assert records
        assert all(r.levelno == logging.DEBUG for r in records)

    def test_history_observer_payloads(self):
        observer = HistoryObserver()
        report = bad("e")

        observer.on_attempt(1, Candidate("x"), report)
        observer.on_retry(1, "1. e")

        assert observer.events[0].payload is report
        assert observer.events[1].attempt == 1
        assert observer.feedback == ["1. e"]

    def test_composite_fans_out_in_order(self):
        first, second = HistoryObserver(), HistoryObserver()

        run_validated(
            "task",
            ScriptedGenerator(),
            ScriptedValidator([bad(), ok()]),
            observer=CompositeObserver(first, second),
        )

        assert first.kinds == second.kinds == ["attempt", "retry", "attempt", "outcome"]
