"""OpenAI chat completion client.

Thin wrapper over the OpenAI Python SDK shared by the AI chat service and the
tool-calling assistant. One configured client is built per process and reused
across requests.

Requests are sent once; provider failures propagate to the caller.
"""

import logging
from collections.abc import Iterator
from typing import Any

from openai import OpenAI

from edi_portal.shared import metrics
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "OpenAI API key not configured. Please set OPENAI_API_KEY in your environment."
)


class LLMError(Exception):
    """Base error for LLM provider failures."""


class LLMNotConfiguredError(LLMError):
    """Raised when a request is made without an OpenAI API key."""

    def __init__(self, message: str = NOT_CONFIGURED_MESSAGE) -> None:
        super().__init__(message)


class OpenAIChatClient:
    """OpenAI chat completion client.

    Requires OPENAI_API_KEY (or APP_OPENAI_API_KEY). When the key is missing the
    client reports itself as unavailable instead of failing at startup.
    """

    def __init__(self, settings: Settings, client: OpenAI | None = None) -> None:
        """Initialize OpenAI client wrapper.

        Args:
            settings: Application settings
            client: Optional preconfigured OpenAI SDK client
        """
        self.settings = settings
        self._client = client

        if not self.is_available():
            logger.warning("OPENAI_API_KEY not configured. AI features will be disabled.")

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        """Configured chat model name."""
        return self.settings.openai_model

    def is_available(self) -> bool:
        """Check if an OpenAI API key is configured.

        Returns:
            True if a usable API key is set
        """
        return self._client is not None or self.settings.openai_configured

    def _get_client(self) -> OpenAI:
        if not self.is_available():
            raise LLMNotConfiguredError()
        if self._client is None:
            self._client = OpenAI(api_key=self.settings.openai_api_key)
            logger.info("OpenAI client initialized")
        return self._client

    def _request_kwargs(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        max_tokens: int | None,
        temperature: float,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens or self.settings.openai_max_tokens,
            "temperature": temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        return kwargs

    def create_completion(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> Any:
        """Request a chat completion.

        Args:
            messages: Chat history in OpenAI message format
            tools: Optional tool definitions; tool choice is left to the model
            max_tokens: Token ceiling (defaults to settings.openai_max_tokens)
            temperature: Sampling temperature

        Returns:
            OpenAI ChatCompletion response

        Raises:
            LLMNotConfiguredError: If no API key is configured
            openai.OpenAIError: If the provider call fails
        """
        client = self._get_client()
        logger.debug(f"Sending chat request with {len(messages)} messages")
        try:
            completion = client.chat.completions.create(
                **self._request_kwargs(messages, tools, max_tokens, temperature)
            )
        except Exception:
            metrics.llm_requests_total.labels(operation="completion", status="failed").inc()
            raise
        metrics.llm_requests_total.labels(operation="completion", status="success").inc()
        return completion

    def stream_completion(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> Iterator[Any]:
        """Request a streamed chat completion.

        Args:
            messages: Chat history in OpenAI message format
            tools: Optional tool definitions
            max_tokens: Token ceiling (defaults to settings.openai_max_tokens)
            temperature: Sampling temperature

        Yields:
            ChatCompletionChunk objects as they arrive

        Raises:
            LLMNotConfiguredError: If no API key is configured
        """
        client = self._get_client()
        try:
            stream = client.chat.completions.create(
                **self._request_kwargs(messages, tools, max_tokens, temperature),
                stream=True,
            )
            yield from stream
        except Exception:
            metrics.llm_requests_total.labels(operation="stream", status="failed").inc()
            raise
        metrics.llm_requests_total.labels(operation="stream", status="success").inc()
