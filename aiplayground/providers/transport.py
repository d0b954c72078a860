"""
HTTP transport for providers without a usable streaming SDK.

Opens one streaming request and exposes its body as lazy lines or as
Server-Sent Events decoded by httpx-sse.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import httpx
from httpx_sse import EventSource, ServerSentEvent

from ..errors import TransportError

logger = logging.getLogger(__name__)


class RawStream:
    """An open streaming response.

    Lines are produced lazily and only once; the stream is not replayable.
    """

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", "")

    def iter_lines(self) -> Iterator[str]:
        """Yield body lines as they arrive."""
        try:
            yield from self._response.iter_lines()
        except (httpx.TransportError, httpx.StreamError) as e:
            raise TransportError(
                f"Connection dropped while streaming: {e}",
                user_message="The connection to the provider was interrupted.",
            ) from e

    def iter_sse(self) -> Iterator[ServerSentEvent]:
        """Yield Server-Sent Events as they arrive.

        Raises:
            TransportError: If the body is not an event stream or the
                connection drops
        """
        try:
            yield from EventSource(self._response).iter_sse()
        except (httpx.TransportError, httpx.StreamError) as e:
            raise TransportError(
                f"Event stream failed: {e}",
                user_message="The connection to the provider was interrupted.",
            ) from e

    def read_text(self) -> str:
        """Read the remaining body in one go."""
        try:
            self._response.read()
        except (httpx.TransportError, httpx.StreamError) as e:
            raise TransportError(f"Connection dropped while reading: {e}") from e
        return self._response.text


def create_http_client(timeout: float = 120.0, connect_timeout: float = 10.0) -> httpx.Client:
    """Create the HTTP client shared by one provider instance."""
    return httpx.Client(timeout=httpx.Timeout(timeout, connect=connect_timeout))


@contextmanager
def open_stream(
    client: httpx.Client,
    method: str,
    url: str,
    headers: Optional[dict[str, str]] = None,
    json: Any = None,
) -> Iterator[RawStream]:
    """Open a streaming request and yield it as a RawStream.

    The connection is released when the block exits, whether the body was
    fully consumed, abandoned early or interrupted by an exception.

    Raises:
        TransportError: If the connection cannot be established
    """
    logger.debug(f"Opening stream: {method} {url}")
    try:
        with client.stream(method, url, headers=headers, json=json) as response:
            yield RawStream(response)
    except httpx.TransportError as e:
        raise TransportError(
            f"Cannot connect to {url}: {e}",
            user_message="Cannot reach the provider. Please check your internet connection.",
        ) from e

