"""
Hugging Face Inference provider for AI Playground.

Templated prompts go through text_generation with token details so that
special tokens (end-of-sequence markers) can be dropped; message lists go
through the chat_completion endpoint.
"""

import logging
from typing import Any, Iterator, Optional

from huggingface_hub import InferenceClient
from huggingface_hub.errors import HfHubHTTPError, InferenceTimeoutError

from ..errors import PlaygroundError, ProviderError, TransportError
from .base import CompletionProvider, CompletionRequest, StreamEnd, StreamFrame
from .parsers import token_frame

logger = logging.getLogger(__name__)

_TEXT_GENERATION_OPTIONS = ("max_new_tokens", "temperature", "top_p", "top_k", "repetition_penalty")
_CHAT_OPTIONS = ("max_tokens", "temperature", "top_p", "frequency_penalty", "presence_penalty")


def handle_huggingface_error(error: Exception) -> PlaygroundError:
    """Convert huggingface_hub errors to playground errors."""
    if isinstance(error, InferenceTimeoutError):
        return TransportError(
            f"Hugging Face request timed out: {error}",
            user_message="The model is still loading or timed out. Please try again.",
            provider="huggingface",
        )
    if isinstance(error, HfHubHTTPError):
        response = getattr(error, "response", None)
        status = response.status_code if response is not None else None
        return ProviderError(
            str(error),
            status_code=status,
            user_message=str(error).split("\n")[0],
            provider="huggingface",
        )
    return ProviderError(f"Unexpected error: {str(error)[:200]}", provider="huggingface")


def _pick(options: dict[str, Any], names: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in options.items() if k in names}


class HuggingFaceProvider(CompletionProvider):
    """Streams completions through huggingface_hub's InferenceClient."""

    name = "huggingface"

    def __init__(self, api_key: str, client: Optional[InferenceClient] = None):
        self.client = client or InferenceClient(token=api_key)

    def _stream_text_generation(self, model: str, prompt: str, options: dict[str, Any]) -> Iterator[StreamFrame]:
        params = _pick(options, _TEXT_GENERATION_OPTIONS)
        if "max_tokens" in options and "max_new_tokens" not in params:
            params["max_new_tokens"] = options["max_tokens"]
        try:
            for output in self.client.text_generation(
                prompt,
                model=model,
                stream=True,
                details=True,
                **params,
            ):
                if output.token.special:
                    continue
                yield token_frame(output.token.text)
        except (HfHubHTTPError, InferenceTimeoutError) as e:
            logger.error(f"Hugging Face streaming error [{type(e).__name__}]: {e}")
            raise handle_huggingface_error(e) from e

        yield StreamEnd()

    def _stream_chat_completion(self, model: str, messages: list, options: dict[str, Any]) -> Iterator[StreamFrame]:
        params = _pick(options, _CHAT_OPTIONS)
        if "max_new_tokens" in options and "max_tokens" not in params:
            params["max_tokens"] = options["max_new_tokens"]
        try:
            for chunk in self.client.chat_completion(messages, model=model, stream=True, **params):
                if not chunk.choices:
                    continue
                yield token_frame(chunk.choices[0].delta.content)
        except (HfHubHTTPError, InferenceTimeoutError) as e:
            logger.error(f"Hugging Face streaming error [{type(e).__name__}]: {e}")
            raise handle_huggingface_error(e) from e

        yield StreamEnd()

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a reply; string prompts are already templated for the model."""
        logger.info(f"huggingface: chat stream with {request.model}")
        if isinstance(request.prompt, str):
            return self._stream_text_generation(request.model, request.prompt, request.options)
        messages = request.prompt if isinstance(request.prompt, list) else request.messages
        return self._stream_chat_completion(request.model, messages, request.options)

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a text generation for the prompt."""
        logger.info(f"huggingface: text generation with {request.model}")
        return self._stream_text_generation(request.model, request.prompt or request.prompt_text, request.options)
