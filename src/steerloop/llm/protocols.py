"""LLMClient protocol and response extraction helpers."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMClient(Protocol):
    """What LLMGenerator and LLMReviewValidator need from a client.

    OpenAIClient and AnthropicClient implement it. A custom client only
    has to return a dict from chat(); extract_content() / extract_usage()
    tell the callers how to read that dict. Clients without them are
    read as OpenAI-style responses by the module-level helpers below.
    """

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        ...

    def close(self) -> None:
        ...

    def extract_content(self, response: dict) -> str:
        ...

    def extract_usage(self, response: dict) -> dict | None:
        ...


def extract_content(client: Any, response: dict) -> str:
    """Assistant text of *response*, via the client's extractor when present."""
    extractor = getattr(client, "extract_content", None)
    if callable(extractor):
        return extractor(response)
    try:
        return response["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(
            f"Cannot read content from {type(client).__name__} response; "
            "give the client an extract_content() method"
        ) from exc


def extract_usage(client: Any, response: dict) -> dict | None:
    extractor = getattr(client, "extract_usage", None)
    if callable(extractor):
        return extractor(response)
    return response.get("usage")
