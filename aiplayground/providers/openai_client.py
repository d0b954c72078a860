"""
OpenAI provider for AI Playground.

Streams from the Chat Completions API for chat models and from the legacy
Completions API for instruct models. Fireworks exposes the same API, so
its provider is the OpenAI one pointed at another endpoint.
"""

import logging
from typing import Iterator, Optional

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    OpenAI,
    RateLimitError,
)

from ..errors import PlaygroundError, ProviderError, TransportError
from .base import CompletionProvider, CompletionRequest, StreamEnd, StreamFrame
from .parsers import token_frame

logger = logging.getLogger(__name__)


def handle_openai_error(error: Exception, provider: str = "openai") -> PlaygroundError:
    """Convert OpenAI SDK errors to playground errors with user-friendly text."""
    label = "Fireworks" if provider == "fireworks" else "OpenAI"

    if isinstance(error, APITimeoutError):
        return TransportError(
            f"{label} request timed out: {error}",
            user_message=f"{label} request timed out. Please try again.",
            provider=provider,
        )
    elif isinstance(error, APIConnectionError):
        return TransportError(
            f"Cannot connect to {label}: {error}",
            user_message=f"Cannot connect to {label}. Please check your internet connection.",
            provider=provider,
        )
    elif isinstance(error, AuthenticationError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message=f"Invalid {label} API key.",
            provider=provider,
        )
    elif isinstance(error, RateLimitError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message=f"{label} rate limit reached. Please wait a moment and try again.",
            provider=provider,
        )
    elif isinstance(error, APIStatusError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message=error.message,
            provider=provider,
        )
    elif isinstance(error, APIError):
        return ProviderError(str(error), user_message=error.message, provider=provider)
    return ProviderError(f"Unexpected error: {str(error)[:200]}", provider=provider)


class OpenAIProvider(CompletionProvider):
    """Streams completions through the official OpenAI SDK."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a chat completion from the conversation messages."""
        messages = request.prompt if isinstance(request.prompt, list) else request.messages
        logger.info(f"{self.name}: chat completion with {request.model} ({len(messages)} messages)")
        try:
            stream = self.client.chat.completions.create(
                model=request.model,
                messages=messages,
                stream=True,
                **request.options,
            )
            try:
                for chunk in stream:
                    if not chunk.choices:
                        continue
                    yield token_frame(chunk.choices[0].delta.content)
            finally:
                stream.close()
        except APIError as e:
            logger.error(f"{self.name} streaming error [{type(e).__name__}]: {e}")
            raise handle_openai_error(e, self.name) from e

        yield StreamEnd()

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a text completion for the prompt."""
        logger.info(f"{self.name}: text completion with {request.model}")
        try:
            stream = self.client.completions.create(
                model=request.model,
                prompt=request.prompt,
                stream=True,
                **request.options,
            )
            try:
                for chunk in stream:
                    if not chunk.choices:
                        continue
                    yield token_frame(chunk.choices[0].text)
            finally:
                stream.close()
        except APIError as e:
            logger.error(f"{self.name} streaming error [{type(e).__name__}]: {e}")
            raise handle_openai_error(e, self.name) from e

        yield StreamEnd()

    def close(self) -> None:
        self.client.close()


class FireworksProvider(OpenAIProvider):
    """Fireworks.ai through its OpenAI-compatible endpoint."""

    name = "fireworks"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.fireworks.ai/inference/v1",
        client: Optional[OpenAI] = None,
    ):
        super().__init__(api_key, base_url=base_url, client=client)
