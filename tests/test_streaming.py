"""Tests for the streaming completion normalizer."""

import pytest

from aiplayground.errors import ErrorCategory, ProviderError, StreamRejected, TransportError
from aiplayground.providers.base import ErrorFrame, StreamEnd, StreamStart, TokenDelta
from aiplayground.streaming import (
    CallbackSet,
    CompletionResult,
    StreamNormalizer,
    StreamState,
    normalize_stream,
)


class TestCallbackOrdering:
    """Test the order and payload of callbacks."""

    def test_tokens_in_order_with_cumulative_text(self, recorder):
        """Test each on_token sees everything received so far."""
        frames = [TokenDelta("Hel"), TokenDelta("lo"), TokenDelta(" world"), StreamEnd()]

        result = normalize_stream(frames, recorder.callbacks)

        assert recorder.events == [
            ("start", None),
            ("token", "Hel"),
            ("token", "Hello"),
            ("token", "Hello world"),
            ("final", "Hello world"),
        ]
        assert result == CompletionResult(message="Hello world")

    def test_on_start_fires_once(self, recorder):
        """Test on_start fires exactly once even with StreamStart frames."""
        frames = [StreamStart(), TokenDelta("a"), StreamStart(), TokenDelta("b"), StreamEnd()]

        normalize_stream(frames, recorder.callbacks)

        assert recorder.of("start") == [None]
        assert recorder.events[0] == ("start", None)

    def test_stream_start_frame_triggers_on_start(self, recorder):
        """Test a StreamStart frame alone begins the stream."""
        normalize_stream([StreamStart(), StreamEnd()], recorder.callbacks)

        assert recorder.events == [("start", None), ("final", "")]

    def test_final_after_last_token(self, recorder):
        """Test on_final is the last event and fires once."""
        normalize_stream([TokenDelta("x"), StreamEnd(), StreamEnd()], recorder.callbacks)

        assert recorder.events[-1] == ("final", "x")
        assert len(recorder.of("final")) == 1

    def test_missing_callbacks_are_skipped(self):
        """Test an empty CallbackSet still resolves."""
        result = normalize_stream([TokenDelta("ok"), StreamEnd()], CallbackSet())
        assert result.message == "ok"

    def test_result_payload(self):
        """Test the success payload shape."""
        result = normalize_stream([TokenDelta("hi"), StreamEnd()], CallbackSet())
        assert result.to_dict() == {"status": "success", "message": "hi"}


class TestTextNormalization:
    """Test accumulated text rules."""

    def test_first_token_leading_space_stripped(self, recorder):
        """Test a single leading space on the first token is dropped."""
        normalize_stream([TokenDelta(" Hello"), TokenDelta(" there"), StreamEnd()], recorder.callbacks)

        assert recorder.of("token") == ["Hello", "Hello there"]
        assert recorder.of("final") == ["Hello there"]

    def test_only_one_space_stripped(self, recorder):
        """Test indentation beyond the first space survives."""
        normalize_stream([TokenDelta("  code"), StreamEnd()], recorder.callbacks)
        assert recorder.of("final") == [" code"]

    def test_final_text_from_end_frame_wins(self, recorder):
        """Test a StreamEnd carrying text replaces the accumulated text."""
        frames = [TokenDelta("partial"), StreamEnd(final_text="The full reply")]

        result = normalize_stream(frames, recorder.callbacks)

        assert recorder.of("final") == ["The full reply"]
        assert result.message == "The full reply"

    def test_none_frames_are_skipped(self, recorder):
        """Test None placeholders do not start the stream or add text."""
        normalize_stream([None, TokenDelta("a"), None, TokenDelta("b"), None, StreamEnd()], recorder.callbacks)

        assert recorder.of("token") == ["a", "ab"]

    def test_frames_after_end_are_ignored(self, recorder):
        """Test nothing after StreamEnd is delivered or consumed."""
        consumed = []

        def frames():
            for frame in [TokenDelta("a"), StreamEnd(), TokenDelta("late")]:
                consumed.append(frame)
                yield frame

        normalize_stream(frames(), recorder.callbacks)

        assert recorder.of("token") == ["a"]
        assert TokenDelta("late") not in consumed


class TestStreamEndings:
    """Test streams that end without a StreamEnd frame."""

    def test_source_exhausted_finalizes(self, recorder):
        """Test a stream that just stops is finalized with its text."""
        result = normalize_stream([TokenDelta("a"), TokenDelta("b")], recorder.callbacks)

        assert recorder.of("final") == ["ab"]
        assert result.message == "ab"

    def test_empty_stream(self, recorder):
        """Test an empty stream resolves with no callbacks."""
        result = normalize_stream([], recorder.callbacks)

        assert recorder.events == []
        assert result.message == ""

    def test_only_none_frames(self, recorder):
        """Test a stream of keep-alives is treated as empty."""
        result = normalize_stream([None, None], recorder.callbacks)

        assert recorder.events == []
        assert result.to_dict() == {"status": "success", "message": ""}

    def test_iterator_closed_on_early_stop(self):
        """Test the frame source is closed when the stream ends early."""
        state = {"closed": False}

        def frames():
            try:
                yield TokenDelta("a")
                yield StreamEnd()
                yield TokenDelta("never")
            finally:
                state["closed"] = True

        normalize_stream(frames(), CallbackSet())
        assert state["closed"] is True


class TestStreamErrors:
    """Test provider and transport failures."""

    def test_error_frame_rejects(self, recorder):
        """Test an ErrorFrame rejects with the provider's message."""
        frames = [TokenDelta("a"), ErrorFrame("rate limited"), TokenDelta("b")]

        with pytest.raises(StreamRejected) as exc_info:
            normalize_stream(frames, recorder.callbacks)

        assert exc_info.value.to_dict() == {"status": "error", "message": "rate limited"}
        assert recorder.of("final") == []
        assert recorder.of("token") == ["a"]

    def test_error_first_skips_on_start(self, recorder):
        """Test a stream that fails immediately never starts."""
        with pytest.raises(StreamRejected):
            normalize_stream([ErrorFrame("bad key")], recorder.callbacks)

        assert recorder.events == []

    def test_transport_error_rejects(self, recorder):
        """Test a dropped connection becomes a rejection."""
        def frames():
            yield TokenDelta("a")
            raise TransportError("socket closed", user_message="The connection was interrupted.")

        with pytest.raises(StreamRejected) as exc_info:
            normalize_stream(frames(), recorder.callbacks)

        assert exc_info.value.message == "The connection was interrupted."
        assert exc_info.value.category == ErrorCategory.NETWORK
        assert recorder.of("final") == []

    def test_provider_error_rejects(self):
        """Test SDK errors raised by a provider become rejections."""
        def frames():
            raise ProviderError("401", status_code=401, user_message="Invalid API key.", provider="openai")
            yield

        with pytest.raises(StreamRejected) as exc_info:
            normalize_stream(frames(), CallbackSet())

        assert exc_info.value.message == "Invalid API key."
        assert exc_info.value.provider == "openai"

    def test_other_exceptions_propagate(self):
        """Test programming errors are not disguised as rejections."""
        def frames():
            raise RuntimeError("bug")
            yield

        with pytest.raises(RuntimeError):
            normalize_stream(frames(), CallbackSet())


class TestStreamNormalizer:
    """Test the per-stream state machine directly."""

    def test_state_transitions(self):
        """Test NOT_STARTED -> STREAMING -> FINISHED."""
        normalizer = StreamNormalizer(CallbackSet())
        assert normalizer.state == StreamState.NOT_STARTED

        normalizer.feed(TokenDelta("a"))
        assert normalizer.state == StreamState.STREAMING

        normalizer.feed(StreamEnd())
        assert normalizer.state == StreamState.FINISHED
        assert normalizer.is_done

    def test_error_state(self):
        """Test an ErrorFrame leaves the normalizer errored."""
        normalizer = StreamNormalizer(CallbackSet())
        with pytest.raises(StreamRejected):
            normalizer.feed(ErrorFrame("boom"))
        assert normalizer.state == StreamState.ERRORED
        assert normalizer.final_text is None

    def test_finish_is_noop_before_start(self, recorder):
        """Test finish() on an unstarted stream calls nothing."""
        normalizer = StreamNormalizer(recorder.callbacks)
        normalizer.finish()
        assert recorder.events == []

    def test_concurrent_streams_do_not_share_text(self):
        """Test interleaved normalizers keep separate accumulators."""
        first_tokens, second_tokens = [], []
        first = StreamNormalizer(CallbackSet(on_token=first_tokens.append))
        second = StreamNormalizer(CallbackSet(on_token=second_tokens.append))

        first.feed(TokenDelta("one"))
        second.feed(TokenDelta("two"))
        first.feed(TokenDelta(" more"))
        second.feed(StreamEnd())

        assert first.text == "one more"
        assert second.final_text == "two"
        assert first_tokens == ["one", "one more"]
        assert second_tokens == ["two"]

    def test_tokens_are_recorded(self):
        """Test the token list keeps the normalized pieces."""
        normalizer = StreamNormalizer(CallbackSet())
        for frame in (TokenDelta(" a"), TokenDelta(" b")):
            normalizer.feed(frame)
        assert normalizer.tokens == ["a", " b"]
