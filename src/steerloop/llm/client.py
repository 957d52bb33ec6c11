"""HTTP chat clients for the LLM-backed generator and reviewer.

ChatHTTPClient owns the transport shared by every provider: API key and
base URL lookup, an httpx.Client, tenacity retries for transient
failures, and mapping of auth / rate-limit statuses onto the LLM error
hierarchy. Providers subclass it and describe only their wire format.

These transport retries happen inside a single generate() or validate()
call. They never consume an attempt of ValidatedGenerationLoop.
"""

from __future__ import annotations

import logging
import os
from typing import Any, ClassVar

import httpx
import tenacity

from steerloop.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

_SERVER_ERRORS = frozenset({500, 502, 503, 504})
_TRANSIENT_TRANSPORT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


def _is_server_error(exc: BaseException) -> bool:
    return (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code in _SERVER_ERRORS
    )


def _make_retryer(max_retries: int) -> tenacity.Retrying:
    """Retry rate limits, 5xx and connection failures; reraise the last one.

    LLMAuthError and other 4xx responses fall through on the first try.
    """
    return tenacity.Retrying(
        retry=(
            tenacity.retry_if_exception_type((LLMRateLimitError, *_TRANSIENT_TRANSPORT_ERRORS))
            | tenacity.retry_if_exception(_is_server_error)
        ),
        wait=(
            tenacity.wait_exponential(multiplier=1, min=1, max=30)
            + tenacity.wait_random(0, 2)
        ),
        stop=tenacity.stop_after_attempt(max(1, max_retries)),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status in (401, 403):
        raise LLMAuthError(f"Authentication failed: HTTP {status} - {response.text}")
    if status == 429:
        raise LLMRateLimitError(
            f"Rate limited: HTTP 429 - {response.text}",
            retry_after=_parse_retry_after(response),
        )
    response.raise_for_status()


class ChatHTTPClient:
    """Base for httpx chat clients implementing the LLMClient protocol.

    Subclasses set the class attributes and override ``_endpoint()``,
    ``_auth_headers()`` and ``_payload()``. ``required_key`` names the
    top-level key a well-formed response must carry.
    """

    env_prefix: ClassVar[str] = ""
    default_base_url: ClassVar[str] = ""
    fallback_model: ClassVar[str] = ""
    required_key: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        key_var = f"{self.env_prefix}_API_KEY"
        self._api_key = api_key or os.environ.get(key_var, "")
        if not self._api_key:
            raise LLMConfigError(f"No API key provided. Pass api_key= or set {key_var}.")
        self._base_url = (
            base_url
            or os.environ.get(f"{self.env_prefix}_BASE_URL")
            or self.default_base_url
        ).rstrip("/")
        self._default_model = default_model or self.fallback_model
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            headers={"Content-Type": "application/json", **self._auth_headers()},
        )

    @property
    def default_model(self) -> str:
        return self._default_model

    def _endpoint(self) -> str:
        raise NotImplementedError

    def _auth_headers(self) -> dict[str, str]:
        raise NotImplementedError

    def _payload(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send one chat request, retrying transient failures.

        Extra keyword arguments are merged into the request body.

        Raises:
            LLMAuthError: On 401/403, without retrying.
            LLMRateLimitError: On 429 once retries are spent.
            LLMResponseError: When the body lacks ``required_key``.
            httpx.HTTPStatusError: On any other error status.
        """
        payload = self._payload(messages, model or self._default_model, temperature, max_tokens)
        payload.update(kwargs)
        return _make_retryer(self._max_retries)(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> dict:
        response = self._client.post(f"{self._base_url}{self._endpoint()}", json=payload)
        _raise_for_status(response)
        data = response.json()
        if self.required_key not in data:
            raise LLMResponseError(
                f"Unexpected response format: missing {self.required_key!r} key. "
                f"Response: {data}"
            )
        return data

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self._base_url!r}, model={self._default_model!r})"


class OpenAIClient(ChatHTTPClient):
    """Client for OpenAI-compatible ``/chat/completions`` endpoints.

    Reads STEERLOOP_OPENAI_API_KEY and STEERLOOP_OPENAI_BASE_URL when the
    constructor arguments are omitted.

    Usage::

        with OpenAIClient() as client:
            response = client.chat([{"role": "user", "content": "Hello"}])
            text = client.extract_content(response)
    """

    env_prefix = "STEERLOOP_OPENAI"
    default_base_url = "https://api.openai.com/v1"
    fallback_model = "gpt-4o-mini"
    required_key = "choices"

    def _endpoint(self) -> str:
        return "/chat/completions"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _payload(self, messages, model, temperature, max_tokens):
        payload: dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    @staticmethod
    def extract_content(response: dict) -> str:
        """Text of the first choice; a null content becomes ``""``."""
        try:
            return response["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMResponseError(f"Cannot extract content from response: {response}") from exc

    @staticmethod
    def extract_usage(response: dict) -> dict | None:
        return response.get("usage")
