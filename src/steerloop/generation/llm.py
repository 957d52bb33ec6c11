"""LLM-backed Generator implementation."""

from __future__ import annotations

import logging
from typing import Any, Optional

from steerloop.formatting import clean_code
from steerloop.llm.protocols import LLMClient, extract_content, extract_usage
from steerloop.models.request import Candidate, GenerationRequest
from steerloop.prompts.generation import (
    GENERATION_SYSTEM_PROMPT,
    build_generation_prompt,
    build_retry_prompt,
)

logger = logging.getLogger(__name__)


class LLMGenerator:
    """Generate code with an LLM, folding validation feedback into retries.

    Stateless between calls: each call builds its prompt from the request
    and the feedback alone, so one instance can serve concurrent loops
    if the client can.

    Args:
        client: Any LLMClient (OpenAIClient, AnthropicClient, custom).
        model: Model override; None uses the client's default.
        temperature: Sampling temperature; None uses the API default.
        max_tokens: Completion limit; None uses the client default.
        system_prompt: Override for GENERATION_SYSTEM_PROMPT.
        clean: Strip markdown fences and normalize whitespace.
    """

    def __init__(
        self,
        client: LLMClient,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        clean: bool = True,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt or GENERATION_SYSTEM_PROMPT
        self.clean = clean

    def build_messages(self, request: Any, feedback: Optional[str] = None) -> list[dict[str, str]]:
        task, language, context = _unpack(request)
        if feedback:
            previous = getattr(feedback, "previous", None)
            user = build_retry_prompt(
                task,
                feedback,
                language=language,
                context=context,
                previous_code=previous if isinstance(previous, str) else None,
            )
        else:
            user = build_generation_prompt(task, language=language, context=context)
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": user},
        ]

    def generate(self, request: Any, feedback: Optional[str] = None) -> Candidate:
        messages = self.build_messages(request, feedback)
        logger.debug("Requesting generation (retry=%s)", feedback is not None)

        response = self._client.chat(
            messages,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        text = extract_content(self._client, response)
        _, language, _ = _unpack(request)
        content = clean_code(text, language) if self.clean else text

        metadata: dict[str, Any] = {"raw_length": len(text)}
        if response.get("model"):
            metadata["model"] = response["model"]
        usage = extract_usage(self._client, response)
        if usage:
            metadata["usage"] = usage
        return Candidate(content=content, metadata=metadata)


def _unpack(request: Any) -> tuple[str, str, dict | None]:
    if isinstance(request, GenerationRequest):
        return request.task, request.language, dict(request.context) or None
    return str(request), "python", None
