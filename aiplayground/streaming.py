"""
Streaming completion normalizer.

Drives a CallbackSet from a sequence of provider frames:

    on_start()           once, before the first token
    on_token(text)       for every token, with the cumulative text so far
    on_final(text)       once, after the last token, never after an error

A stream that reports an error raises StreamRejected instead of calling
on_final.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from .errors import ProviderError, StreamRejected, TransportError
from .providers.base import ErrorFrame, StreamEnd, StreamFrame, StreamStart, TokenDelta

logger = logging.getLogger(__name__)


@dataclass
class CallbackSet:
    """The three callbacks a stream reports through. All are optional."""
    on_start: Optional[Callable[[], None]] = None
    on_token: Optional[Callable[[str], None]] = None
    on_final: Optional[Callable[[str], None]] = None


@dataclass
class CompletionResult:
    """Resolved value of a successful stream."""
    message: str
    status: str = "success"

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "message": self.message}


class StreamState(Enum):
    """Lifecycle of one normalized stream."""
    NOT_STARTED = "not_started"
    STREAMING = "streaming"
    FINISHED = "finished"
    ERRORED = "errored"


class StreamNormalizer:
    """State machine for a single stream.

    One instance per stream; the accumulated text belongs to it alone.
    """

    def __init__(self, callbacks: CallbackSet):
        self.callbacks = callbacks
        self.state = StreamState.NOT_STARTED
        self.tokens: list[str] = []
        self._text = ""
        self.final_text: Optional[str] = None

    @property
    def text(self) -> str:
        """The text accumulated so far."""
        return self._text

    @property
    def is_done(self) -> bool:
        return self.state in (StreamState.FINISHED, StreamState.ERRORED)

    def feed(self, frame: Optional[StreamFrame]) -> None:
        """Process one frame.

        Raises:
            StreamRejected: If the frame reports a provider error
        """
        if frame is None or self.state == StreamState.FINISHED:
            return

        if isinstance(frame, ErrorFrame):
            self.state = StreamState.ERRORED
            raise StreamRejected(frame.message)

        if self.state == StreamState.ERRORED:
            return

        if self.state == StreamState.NOT_STARTED:
            self.state = StreamState.STREAMING
            if self.callbacks.on_start:
                self.callbacks.on_start()

        if isinstance(frame, TokenDelta):
            self._append(frame.text)
        elif isinstance(frame, StreamEnd):
            self._finish(frame.final_text)
        elif not isinstance(frame, StreamStart):
            logger.debug(f"Ignoring unknown frame type: {type(frame).__name__}")

    def finish(self) -> None:
        """Finalize a stream whose source ran out without a StreamEnd."""
        if self.state == StreamState.STREAMING:
            self._finish(None)

    def _append(self, text: str) -> None:
        # First-token space artifact emitted by several providers
        if not self._text and text.startswith(" "):
            text = text[1:]
        self.tokens.append(text)
        self._text += text
        if self.callbacks.on_token:
            self.callbacks.on_token(self._text)

    def _finish(self, final_text: Optional[str]) -> None:
        self.final_text = final_text if final_text is not None else self._text
        self.state = StreamState.FINISHED
        if self.callbacks.on_final:
            self.callbacks.on_final(self.final_text)


def normalize_stream(
    frames: Iterable[Optional[StreamFrame]],
    callbacks: CallbackSet,
) -> CompletionResult:
    """Drain frames into callbacks and return the completion.

    Args:
        frames: Frames in provider order; None entries are skipped
        callbacks: The CallbackSet to drive

    Returns:
        CompletionResult with the final text

    Raises:
        StreamRejected: On a provider error frame or a transport failure
    """
    normalizer = StreamNormalizer(callbacks)
    iterator = iter(frames)

    try:
        for frame in iterator:
            normalizer.feed(frame)
            if normalizer.is_done:
                break
    except (TransportError, ProviderError) as e:
        normalizer.state = StreamState.ERRORED
        logger.warning(f"Stream aborted: {e}")
        raise StreamRejected(
            e.user_message, category=e.category, provider=e.provider
        ) from e
    except StreamRejected as e:
        logger.warning(f"Stream rejected: {e.message}")
        raise
    finally:
        # Release the provider connection even when we stop early
        close = getattr(iterator, "close", None)
        if close is not None:
            close()

    normalizer.finish()
    logger.debug(f"Stream finished with {len(normalizer.tokens)} tokens")
    return CompletionResult(message=normalizer.final_text or "")
