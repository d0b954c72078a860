"""
Base provider interface and stream frames.

Every provider turns its wire format into a plain generator of
StreamFrame objects. The normalizer only ever sees these frames.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union


@dataclass(frozen=True)
class TokenDelta:
    """A piece of generated text."""
    text: str


@dataclass(frozen=True)
class StreamStart:
    """The provider announced the start of generation."""


@dataclass(frozen=True)
class StreamEnd:
    """The provider finished; final_text overrides the accumulated text."""
    final_text: Optional[str] = None


@dataclass(frozen=True)
class ErrorFrame:
    """The provider reported an error inside the stream."""
    message: str


StreamFrame = Union[TokenDelta, StreamStart, StreamEnd, ErrorFrame]


@dataclass
class CompletionRequest:
    """One completion request, already shaped for the target model.

    messages holds the role-tagged history; prompt holds whatever the
    model's prompt type produced from it (a string, a list of chat
    messages, or Cohere chat history). prompt_text is the latest user text.
    """
    model: str
    messages: list[dict[str, str]] = field(default_factory=list)
    prompt: Any = None
    prompt_text: str = ""
    options: dict[str, Any] = field(default_factory=dict)


class CompletionProvider(ABC):
    """Abstract base class for inference providers.

    Implementations open one stream per call and yield frames lazily.
    Closing the returned generator releases the underlying connection.
    """

    #: Provider id as used in the catalog
    name: str = ""

    @abstractmethod
    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a chat-style completion for the conversation in request.

        Args:
            request: The prepared completion request

        Yields:
            StreamFrame objects in provider order
        """
        ...

    @abstractmethod
    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        """Stream a plain text completion for request.prompt.

        Args:
            request: The prepared completion request

        Yields:
            StreamFrame objects in provider order
        """
        ...

    def close(self) -> None:
        """Release any client resources held by the provider.

        Default implementation is a no-op.
        """
        pass
