"""
Google Gemini provider for AI Playground.

Uses the google-genai SDK's generate_content_stream; the SDK yields
response chunks whose text is already decoded.
"""

import logging
from typing import Any, Iterator, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import PlaygroundError, ProviderError, TransportError
from .base import CompletionProvider, CompletionRequest, StreamEnd, StreamFrame
from .parsers import token_frame

logger = logging.getLogger(__name__)

# Option names that differ between the catalog and GenerateContentConfig
_OPTION_NAMES = {
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "max_tokens": "max_output_tokens",
    "max_output_tokens": "max_output_tokens",
}


def handle_gemini_error(error: Exception) -> PlaygroundError:
    """Convert google-genai and transport errors to playground errors."""
    if isinstance(error, httpx.TransportError):
        return TransportError(
            f"Cannot connect to Gemini: {error}",
            user_message="Cannot connect to Google Gemini. Please check your internet connection.",
            provider="google-gemini",
        )
    if isinstance(error, genai_errors.APIError):
        message = error.message or str(error)
        if isinstance(error, genai_errors.ServerError) and (
            "overloaded" in message.lower() or error.code == 503
        ):
            message = "Gemini model is currently overloaded. Please retry later."
        return ProviderError(str(error), status_code=error.code, user_message=message, provider="google-gemini")
    return ProviderError(f"Unexpected error: {str(error)[:200]}", provider="google-gemini")


def build_contents(messages: list[dict[str, str]]) -> list[types.Content]:
    """Convert role/content history into google-genai Content objects."""
    contents: list[types.Content] = []
    for msg in messages:
        role = msg.get("role")
        # Gemini accepts only "user" and "model" roles
        if role == "system":
            continue
        if role == "assistant":
            role = "model"
        contents.append(types.Content(role=role, parts=[types.Part.from_text(text=msg.get("content", ""))]))
    return contents


def build_generation_config(options: dict[str, Any]) -> types.GenerateContentConfig:
    """Map catalog options onto a GenerateContentConfig."""
    params = {_OPTION_NAMES[k]: v for k, v in options.items() if k in _OPTION_NAMES}
    return types.GenerateContentConfig(**params)


class GeminiProvider(CompletionProvider):
    """Streams completions through google-genai."""

    name = "google-gemini"

    def __init__(self, api_key: str, client: Optional[genai.Client] = None):
        self.client = client or genai.Client(api_key=api_key)

    def _stream(self, model: str, contents: Any, options: dict[str, Any]) -> Iterator[StreamFrame]:
        try:
            for chunk in self.client.models.generate_content_stream(
                model=model,
                contents=contents,
                config=build_generation_config(options),
            ):
                yield token_frame(getattr(chunk, "text", None))
        except (genai_errors.APIError, httpx.TransportError) as e:
            logger.error(f"Gemini streaming error [{type(e).__name__}]: {e}")
            raise handle_gemini_error(e) from e

        yield StreamEnd()

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a reply to the conversation."""
        messages = request.prompt if isinstance(request.prompt, list) else request.messages
        logger.info(f"google-gemini: chat stream with {request.model} ({len(messages)} messages)")
        return self._stream(request.model, build_contents(messages), request.options)

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a single-turn completion."""
        logger.info(f"google-gemini: text completion with {request.model}")
        return self._stream(request.model, request.prompt or request.prompt_text, request.options)
