"""Anthropic Messages API client.

Transport and retry behaviour come from ChatHTTPClient. System messages
are folded into the top-level ``system`` field, and ``max_tokens`` is
always sent because the API requires it.
"""

from __future__ import annotations

from typing import Any

from steerloop.llm.client import ChatHTTPClient
from steerloop.llm.errors import LLMResponseError

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicClient(ChatHTTPClient):
    """Client for ``/messages``; reads the STEERLOOP_ANTHROPIC_* variables."""

    env_prefix = "STEERLOOP_ANTHROPIC"
    default_base_url = "https://api.anthropic.com/v1"
    fallback_model = "claude-sonnet-4-5"
    required_key = "content"

    def _endpoint(self) -> str:
        return "/messages"

    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key, "anthropic-version": ANTHROPIC_VERSION}

    def _payload(self, messages, model, temperature, max_tokens):
        system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [m for m in messages if m.get("role") != "system"],
        }
        if system:
            payload["system"] = system
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    @staticmethod
    def extract_content(response: dict) -> str:
        """Join the text blocks; tool-use and other blocks are skipped."""
        blocks = response.get("content")
        if not isinstance(blocks, list):
            raise LLMResponseError(f"Cannot extract content from response: {response}")
        return "\n".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )

    @staticmethod
    def extract_usage(response: dict) -> dict | None:
        """Usage renamed to prompt_tokens / completion_tokens / total_tokens."""
        usage = response.get("usage")
        if not usage:
            return None
        prompt = usage.get("input_tokens", 0)
        completion = usage.get("output_tokens", 0)
        return {
            "prompt_tokens": prompt,
            "completion_tokens": completion,
            "total_tokens": prompt + completion,
        }
