"""LLM review validator -- qualitative review via a JSON verdict."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from steerloop.formatting import extract_code_block
from steerloop.llm.protocols import LLMClient, extract_content
from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate
from steerloop.prompts.review import REVIEW_SYSTEM_PROMPT, build_review_prompt

logger = logging.getLogger(__name__)

PARSE_FAILURE = "Failed to parse LLM review response"


class ReviewVerdict(BaseModel):
    """Shape of the JSON object the reviewer is asked to return."""

    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("errors", "warnings", mode="before")
    @classmethod
    def _listify(cls, value: Union[str, list, None]) -> list:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class LLMReviewValidator:
    """Ask an LLM to review the candidate and parse its JSON verdict.

    A verdict that says ``valid: true`` but lists errors is treated as
    invalid. Unparseable output yields an invalid report. Transport
    errors from the client propagate.
    """

    name = "llm_review"

    def __init__(
        self,
        client: LLMClient,
        *,
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 2048,
        priority: int = 100,
        language: str = "python",
        number_lines: bool = True,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.priority = priority
        self.language = language
        self.number_lines = number_lines

    def can_handle(self, candidate: Candidate) -> bool:
        return isinstance(candidate.content, str) and bool(candidate.content.strip())

    def validate(self, candidate: Candidate) -> ValidationReport:
        prompt = build_review_prompt(
            candidate.content, language=self.language, number_lines=self.number_lines
        )
        response = self._client.chat(
            [
                {"role": "system", "content": REVIEW_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return self.parse_review(extract_content(self._client, response))

    def parse_review(self, content: str) -> ValidationReport:
        metadata: dict[str, Any] = {"validator": self.name}
        if self.model:
            metadata["model"] = self.model

        verdict = _parse_verdict(content)
        if verdict is None:
            logger.warning("Unparseable review response: %.200s", content)
            return ValidationReport.failure(
                [PARSE_FAILURE], metadata={**metadata, "raw_response": content}
            )

        metadata["summary"] = verdict.summary
        return ValidationReport(
            valid=verdict.valid and not verdict.errors,
            errors=verdict.errors,
            warnings=verdict.warnings,
            metadata=metadata,
        )


def _parse_verdict(content: str) -> Optional[ReviewVerdict]:
    text = content.strip()
    block = extract_code_block(text, "json")
    if block is not None:
        text = block.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return ReviewVerdict.model_validate(data)
    except ValidationError:
        return None
