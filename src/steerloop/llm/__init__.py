"""LLM client infrastructure for steerloop.

Provides OpenAI-compatible and Anthropic HTTP clients, the pluggable
LLMClient protocol, and the LLM error hierarchy.
"""

from steerloop.llm.anthropic import AnthropicClient
from steerloop.llm.client import ChatHTTPClient, OpenAIClient
from steerloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)
from steerloop.llm.protocols import LLMClient

PROVIDERS = ("openai", "anthropic")


def create_client(provider: str = "openai", **kwargs) -> LLMClient:
    """Build a built-in client by provider name."""
    if provider == "openai":
        return OpenAIClient(**kwargs)
    if provider == "anthropic":
        return AnthropicClient(**kwargs)
    raise LLMConfigError(f"Unknown provider {provider!r}. Choose one of {PROVIDERS}.")


__all__ = [
    "ChatHTTPClient",
    "OpenAIClient",
    "AnthropicClient",
    "LLMClient",
    "create_client",
    "PROVIDERS",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
]
