"""
Inference provider support for AI Playground.

Each provider turns its wire format (SDK iterator, Server-Sent Events or
newline-delimited JSON) into a generator of StreamFrame objects.
"""

from .base import (
    CompletionProvider,
    CompletionRequest,
    ErrorFrame,
    StreamEnd,
    StreamFrame,
    StreamStart,
    TokenDelta,
)
from .factory import SUPPORTED_PROVIDERS, create_provider
from .anthropic_client import AnthropicProvider
from .cohere_client import CohereProvider
from .gemini_client import GeminiProvider
from .huggingface_client import HuggingFaceProvider
from .openai_client import FireworksProvider, OpenAIProvider
from .replicate_client import ReplicateProvider

__all__ = [
    "CompletionProvider",
    "CompletionRequest",
    "StreamFrame",
    "TokenDelta",
    "StreamStart",
    "StreamEnd",
    "ErrorFrame",
    "create_provider",
    "SUPPORTED_PROVIDERS",
    "OpenAIProvider",
    "FireworksProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "HuggingFaceProvider",
    "CohereProvider",
    "ReplicateProvider",
]
