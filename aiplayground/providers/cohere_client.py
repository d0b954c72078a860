"""
Cohere provider for AI Playground.

Both the chat and generate endpoints stream newline-delimited JSON. When a
request fails, Cohere answers with a plain application/json body holding
a message instead of a stream.
"""

import logging
from typing import Any, Iterator, Optional

import httpx

from ..errors import TransportError
from .base import CompletionProvider, CompletionRequest, ErrorFrame, StreamEnd, StreamFrame
from .parsers import parse_cohere_line
from .transport import create_http_client, open_stream

logger = logging.getLogger(__name__)


class CohereProvider(CompletionProvider):
    """Streams chat and generate calls from the Cohere HTTP API."""

    name = "cohere"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.cohere.ai",
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = http_client or create_http_client()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _stream(self, path: str, body: dict[str, Any]) -> Iterator[StreamFrame]:
        with open_stream(self.http, "POST", f"{self.base_url}{path}", headers=self._headers(), json=body) as raw:
            content_type = raw.content_type

            if "application/json" in content_type:
                frame = parse_cohere_line(raw.read_text(), content_type)
                yield frame or ErrorFrame(f"Cohere returned HTTP {raw.status_code}")
                return

            if raw.status_code >= 400:
                yield ErrorFrame(f"Cohere returned HTTP {raw.status_code}")
                return

            for line in raw.iter_lines():
                frame = parse_cohere_line(line, content_type)
                yield frame
                if isinstance(frame, (StreamEnd, ErrorFrame)):
                    return

        raise TransportError(
            f"Cohere stream {path} ended before its final event",
            user_message="The connection to Cohere was interrupted.",
            provider=self.name,
        )

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a chat reply.

        The latest user turn is sent as the message; the turns before it
        form the chat history.
        """
        history = request.prompt if isinstance(request.prompt, list) else []
        if history and history[-1].get("role") == "USER":
            message = history[-1].get("message") or request.prompt_text
            history = history[:-1]
        else:
            message = request.prompt_text

        body = {
            # Chat variants are listed as "<model>/chat"
            "model": request.model.split("/")[0],
            "stream": True,
            "message": message,
            "chat_history": history,
            **request.options,
        }
        logger.info(f"cohere: chat stream with {body['model']} ({len(history)} history turns)")
        return self._stream("/v1/chat", body)

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a generate call."""
        body = {
            "model": request.model,
            "stream": True,
            "prompt": request.prompt or request.prompt_text,
            **request.options,
        }
        logger.info(f"cohere: generate stream with {request.model}")
        return self._stream("/v1/generate", body)

    def close(self) -> None:
        self.http.close()
