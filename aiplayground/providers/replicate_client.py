"""
Replicate provider for AI Playground.

A prediction is created with stream enabled; Replicate answers with a
stream URL that serves the output as Server-Sent Events.
"""

import logging
from typing import Any, Iterator, Optional

import httpx

from ..errors import ParseError, TransportError
from .base import CompletionProvider, CompletionRequest, ErrorFrame, StreamEnd, StreamFrame
from .parsers import load_json_object, parse_replicate_event
from .transport import create_http_client, open_stream

logger = logging.getLogger(__name__)


class ReplicateProvider(CompletionProvider):
    """Streams predictions from the Replicate HTTP API."""

    name = "replicate"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.replicate.com",
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = http_client or create_http_client()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }

    def create_prediction(self, version: str, prompt: str, options: dict[str, Any]) -> dict[str, Any]:
        """Create a streaming prediction and return Replicate's JSON reply.

        Raises:
            TransportError: If the API cannot be reached
            ParseError: If the reply is not a JSON object
        """
        body = {
            "version": version,
            "stream": True,
            "input": {"prompt": prompt, **options},
        }
        try:
            response = self.http.post(f"{self.base_url}/v1/predictions", headers=self._headers(), json=body)
        except httpx.TransportError as e:
            raise TransportError(
                f"Cannot connect to Replicate: {e}",
                user_message="Cannot connect to Replicate. Please check your internet connection.",
                provider=self.name,
            ) from e

        parsed = load_json_object(response.text)
        if response.is_error:
            parsed.setdefault("detail", f"Replicate returned HTTP {response.status_code}")
        logger.debug(f"Replicate prediction {parsed.get('id')} status={parsed.get('status')}")
        return parsed

    def _stream(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        prompt = request.prompt if request.prompt is not None else request.prompt_text
        if isinstance(prompt, list):
            prompt = "\n".join(m.get("content", "") for m in prompt)

        logger.info(f"replicate: prediction with version {request.model[:12]}")
        try:
            prediction = self.create_prediction(request.model, prompt, request.options)
        except ParseError as e:
            yield ErrorFrame(f"Unexpected reply from Replicate: {e}")
            return

        stream_url = (prediction.get("urls") or {}).get("stream")
        if "detail" in prediction or not stream_url:
            yield ErrorFrame(str(prediction.get("detail") or "Replicate did not return a stream URL"))
            return

        headers = {"Accept": "text/event-stream", "Cache-Control": "no-store"}
        with open_stream(self.http, "GET", stream_url, headers=headers) as raw:
            if raw.status_code >= 400:
                yield ErrorFrame(self._error_detail(raw.read_text()) or f"Replicate returned HTTP {raw.status_code}")
                return

            for event in raw.iter_sse():
                frame = parse_replicate_event(event)
                yield frame
                if isinstance(frame, (StreamEnd, ErrorFrame)):
                    return

        raise TransportError(
            f"Replicate stream {stream_url} closed before the done event",
            user_message="The connection to Replicate was interrupted.",
            provider=self.name,
        )

    @staticmethod
    def _error_detail(body: str) -> Optional[str]:
        try:
            payload = load_json_object(body)
        except ParseError:
            return body.strip() or None
        detail = payload.get("detail")
        return str(detail) if detail else None

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a chat reply from a templated prompt."""
        return self._stream(request)

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a plain completion."""
        return self._stream(request)

    def close(self) -> None:
        self.http.close()
