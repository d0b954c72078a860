"""
Anthropic Claude provider for AI Playground.

Chat models stream through the Messages API; Claude 2 models stream
through the legacy Text Completions API with a Human/Assistant prompt.
"""

import logging
from typing import Iterator, Optional

import anthropic

from ..errors import PlaygroundError, ProviderError, TransportError
from ..prompts import build_anthropic_prompt
from .base import CompletionProvider, CompletionRequest, StreamEnd, StreamFrame
from .parsers import token_frame

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1024


def handle_anthropic_error(error: Exception) -> PlaygroundError:
    """Convert Anthropic SDK errors to playground errors."""
    if isinstance(error, anthropic.APITimeoutError):
        return TransportError(
            f"Anthropic request timed out: {error}",
            user_message="Anthropic request timed out. Please try again.",
            provider="anthropic",
        )
    elif isinstance(error, anthropic.APIConnectionError):
        return TransportError(
            f"Cannot connect to Anthropic: {error}",
            user_message="Cannot connect to Anthropic. Please check your internet connection.",
            provider="anthropic",
        )
    elif isinstance(error, anthropic.AuthenticationError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message="Invalid Anthropic API key.",
            provider="anthropic",
        )
    elif isinstance(error, anthropic.RateLimitError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message="Anthropic rate limit reached. Please wait a moment and try again.",
            provider="anthropic",
        )
    elif isinstance(error, anthropic.APIStatusError):
        return ProviderError(
            str(error),
            status_code=error.status_code,
            user_message=error.message,
            provider="anthropic",
        )
    elif isinstance(error, anthropic.APIError):
        return ProviderError(str(error), user_message=error.message, provider="anthropic")
    return ProviderError(f"Unexpected error: {str(error)[:200]}", provider="anthropic")


class AnthropicProvider(CompletionProvider):
    """Streams completions through the Anthropic SDK."""

    name = "anthropic"

    def __init__(self, api_key: str, client: Optional[anthropic.Anthropic] = None):
        self.client = client or anthropic.Anthropic(api_key=api_key)

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a Messages API reply, invoking the SDK's text stream."""
        messages = request.prompt if isinstance(request.prompt, list) else request.messages
        options = dict(request.options)
        max_tokens = options.pop("max_tokens", DEFAULT_MAX_TOKENS)
        logger.info(f"anthropic: messages stream with {request.model} ({len(messages)} messages)")

        try:
            with self.client.messages.stream(
                model=request.model,
                max_tokens=max_tokens,
                messages=messages,
                **options,
            ) as stream:
                for text in stream.text_stream:
                    yield token_frame(text)
        except anthropic.APIError as e:
            logger.error(f"Anthropic streaming error [{type(e).__name__}]: {e}")
            raise handle_anthropic_error(e) from e

        yield StreamEnd()

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a legacy text completion."""
        prompt = request.prompt or request.prompt_text
        if not prompt.startswith("\n\nHuman:"):
            prompt = build_anthropic_prompt([{"role": "user", "content": prompt}])

        options = dict(request.options)
        max_tokens = options.pop("max_tokens_to_sample", options.pop("max_tokens", DEFAULT_MAX_TOKENS))
        logger.info(f"anthropic: text completion with {request.model}")

        try:
            stream = self.client.completions.create(
                model=request.model,
                prompt=prompt,
                max_tokens_to_sample=max_tokens,
                stream=True,
                **options,
            )
            try:
                for completion in stream:
                    yield token_frame(completion.completion)
            finally:
                stream.close()
        except anthropic.APIError as e:
            logger.error(f"Anthropic streaming error [{type(e).__name__}]: {e}")
            raise handle_anthropic_error(e) from e

        yield StreamEnd()

    def close(self) -> None:
        self.client.close()
