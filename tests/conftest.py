"""Shared test fixtures for steerloop.

Provides in-memory SQLite engine/session/repository fixtures and the
scripted generator/validator doubles used across the loop tests.
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session, sessionmaker

from steerloop.models.report import ValidationReport
from steerloop.storage.engine import create_store_engine, init_db
from steerloop.storage.sqlite import SqliteRunRepository


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_store_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def run_repo(session: Session) -> SqliteRunRepository:
    return SqliteRunRepository(session)


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def ok() -> ValidationReport:
    return ValidationReport.success()


def bad(*errors: str) -> ValidationReport:
    return ValidationReport.failure(errors or ("bad",))


class ScriptedGenerator:
    """Returns scripted outputs and records every (request, feedback) call.

    An Exception instance in ``outputs`` is raised instead of returned.
    The last entry repeats once the script runs out.
    """

    def __init__(self, outputs: list | None = None):
        self.outputs = outputs or ["candidate"]
        self.calls: list[tuple[object, str | None]] = []

    def generate(self, request, feedback=None):
        idx = min(len(self.calls), len(self.outputs) - 1)
        self.calls.append((request, feedback))
        out = self.outputs[idx]
        if isinstance(out, Exception):
            raise out
        return out

    @property
    def feedbacks(self) -> list[str | None]:
        return [f for _, f in self.calls]


class ScriptedValidator:
    """Returns scripted reports and records every candidate it sees.

    An Exception instance in ``verdicts`` is raised instead of returned.
    The last entry repeats once the script runs out.
    """

    def __init__(self, verdicts: list | None = None):
        self.verdicts = verdicts or [ok()]
        self.seen: list = []

    def validate(self, candidate):
        idx = min(len(self.seen), len(self.verdicts) - 1)
        self.seen.append(candidate)
        verdict = self.verdicts[idx]
        if isinstance(verdict, Exception):
            raise verdict
        return verdict


def chat_response(content: str, model: str = "gpt-4o-mini") -> dict:
    """Build a realistic OpenAI chat completion response dict."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


class MockLLMClient:
    """A mock LLM client that records calls and returns canned responses in order."""

    def __init__(self, contents: list[str] | None = None):
        self.contents = contents or ["x = 1"]
        self.calls: list[dict] = []
        self.closed = False

    def chat(self, messages, *, model=None, temperature=None, max_tokens=None, **kwargs):
        idx = min(len(self.calls), len(self.contents) - 1)
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        return chat_response(self.contents[idx])

    def close(self) -> None:
        self.closed = True

    @staticmethod
    def extract_content(response: dict) -> str:
        return response["choices"][0]["message"]["content"]

    @staticmethod
    def extract_usage(response: dict) -> dict | None:
        return response.get("usage")
