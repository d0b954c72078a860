"""
Frame parsers for the raw provider wire formats.

Each parser maps one chunk to a StreamFrame, or to None when the chunk
carries nothing (keep-alives, partial reads, unknown events, bad JSON).
Parsers never raise on malformed input.
"""

import json
import logging
from typing import Any, Optional

from httpx_sse import ServerSentEvent

from ..errors import ParseError
from .base import ErrorFrame, StreamEnd, StreamFrame, StreamStart, TokenDelta

logger = logging.getLogger(__name__)


def load_json_object(chunk: str) -> dict[str, Any]:
    """Decode a chunk that must hold a single JSON object.

    Raises:
        ParseError: If the chunk is not a JSON object
    """
    try:
        parsed = json.loads(chunk)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Invalid JSON chunk: {e}", chunk=chunk) from e
    if not isinstance(parsed, dict):
        raise ParseError("JSON chunk is not an object", chunk=chunk)
    return parsed


def token_frame(text: Optional[str]) -> Optional[StreamFrame]:
    """Wrap an SDK text delta; empty deltas carry nothing."""
    if not text:
        return None
    return TokenDelta(text)


def parse_replicate_event(event: ServerSentEvent) -> Optional[StreamFrame]:
    """Parse one Replicate prediction stream event."""
    if event.event == "output":
        return TokenDelta(event.data)

    if event.event == "done":
        return StreamEnd()

    if event.event == "error":
        try:
            payload = load_json_object(event.data)
        except ParseError:
            return ErrorFrame(event.data or "Replicate stream failed")
        return ErrorFrame(str(payload.get("detail") or event.data))

    logger.debug(f"Skipping Replicate event: {event.event}")
    return None


def parse_cohere_line(line: str, content_type: str = "") -> Optional[StreamFrame]:
    """Parse one line of a Cohere ND-JSON stream.

    Args:
        line: A single line of the response body
        content_type: The response content type; application/json means
            the whole body is an error payload rather than a stream
    """
    if not line.strip():
        return None

    try:
        parsed = load_json_object(line)
    except ParseError as e:
        logger.debug(f"Skipping malformed Cohere chunk: {e}")
        return None

    if "application/json" in content_type:
        return ErrorFrame(str(parsed.get("message", line)))

    # Chat endpoint frames carry an event type
    event_type = parsed.get("event_type")
    if event_type:
        if event_type == "stream-start":
            return StreamStart()
        if event_type == "text-generation":
            return token_frame(parsed.get("text"))
        if event_type == "stream-end":
            return StreamEnd(_cohere_final_text(parsed))
        return None

    # Generate endpoint frames
    if parsed.get("is_finished"):
        return StreamEnd()
    return token_frame(parsed.get("text"))


def _cohere_final_text(parsed: dict[str, Any]) -> Optional[str]:
    """Pull the full reply out of a stream-end frame, if it has one."""
    if isinstance(parsed.get("text"), str):
        return parsed["text"]
    response = parsed.get("response")
    if isinstance(response, dict) and isinstance(response.get("text"), str):
        return response["text"]
    return None
