"""Tests for the HTTP streaming transport."""

import json

import httpx
import pytest

from aiplayground.errors import TransportError
from aiplayground.providers.transport import open_stream


def sse_client(body: bytes, content_type: str = "text/event-stream") -> httpx.Client:
    def handler(request):
        return httpx.Response(200, headers={"content-type": content_type}, content=body)
    return httpx.Client(transport=httpx.MockTransport(handler))


def read_events(body: bytes) -> list[tuple[str, str]]:
    with open_stream(sse_client(body), "GET", "https://example.test/stream") as raw:
        return [(event.event, event.data) for event in raw.iter_sse()]


class TestEventStream:
    """Test decoding an event-stream body into events."""

    def test_multiple_events(self):
        body = b"event: output\ndata: Hello\n\nevent: done\ndata: {}\n\n"
        assert read_events(body) == [("output", "Hello"), ("done", "{}")]

    def test_only_one_leading_space_removed(self):
        """Test token spacing inside data survives framing."""
        assert read_events(b"event: output\ndata:  world\n\n") == [("output", " world")]

    def test_multiline_data_joined(self):
        assert read_events(b"data: line one\ndata: line two\n\n") == [("message", "line one\nline two")]

    def test_comments_skipped(self):
        """Test keep-alive comments produce no events."""
        body = b": ping\n\nevent: output\n: still here\ndata: x\n\n"
        assert read_events(body) == [("output", "x")]

    def test_id_tracked(self):
        with open_stream(sse_client(b"id: 7\nevent: output\ndata: a\n\n"), "GET", "https://example.test/s") as raw:
            events = list(raw.iter_sse())
        assert events[0].id == "7"

    def test_wrong_content_type(self):
        """Test a non event-stream body is a transport failure."""
        client = sse_client(b'{"detail": "nope"}', content_type="application/json")
        with open_stream(client, "GET", "https://example.test/stream") as raw:
            with pytest.raises(TransportError):
                list(raw.iter_sse())


class TestOpenStream:
    """Test opening streaming requests."""

    def test_lines_are_streamed(self):
        """Test the body is exposed line by line."""
        def handler(request):
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=b"event: output\ndata: hi\n\n",
            )

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with open_stream(client, "GET", "https://example.test/stream") as raw:
            assert raw.status_code == 200
            assert raw.content_type == "text/event-stream"
            assert list(raw.iter_lines()) == ["event: output", "data: hi", ""]

    def test_request_body_and_headers_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.content
            return httpx.Response(200, content=b"")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with open_stream(client, "POST", "https://example.test/x", headers={"Authorization": "Bearer k"}, json={"a": 1}):
            pass

        assert seen["auth"] == "Bearer k"
        assert json.loads(seen["body"]) == {"a": 1}

    def test_read_text(self):
        def handler(request):
            return httpx.Response(429, headers={"content-type": "application/json"}, content=b'{"message": "slow down"}')

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with open_stream(client, "POST", "https://example.test/x") as raw:
            assert raw.status_code == 429
            assert raw.read_text() == '{"message": "slow down"}'

    def test_connect_error_becomes_transport_error(self):
        """Test connection failures surface as TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError) as exc_info:
            with open_stream(client, "GET", "https://example.test/stream"):
                pass

        assert "check your internet connection" in exc_info.value.user_message
