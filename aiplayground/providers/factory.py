"""
Provider factory for AI Playground.

Creates the CompletionProvider for a provider id, wiring in endpoints and
timeouts from the configuration.
"""

import logging
from typing import Optional

from ..config import PlaygroundConfig, get_config
from ..errors import ConfigurationError
from .anthropic_client import AnthropicProvider
from .base import CompletionProvider
from .cohere_client import CohereProvider
from .gemini_client import GeminiProvider
from .huggingface_client import HuggingFaceProvider
from .openai_client import FireworksProvider, OpenAIProvider
from .replicate_client import ReplicateProvider
from .transport import create_http_client

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = (
    "openai",
    "fireworks",
    "anthropic",
    "google-gemini",
    "huggingface",
    "cohere",
    "replicate",
)


def create_provider(
    provider: str,
    api_key: Optional[str] = None,
    config: Optional[PlaygroundConfig] = None,
) -> CompletionProvider:
    """Create the provider implementation for a provider id.

    Args:
        provider: Provider id (see SUPPORTED_PROVIDERS)
        api_key: Key to use; falls back to the configured key
        config: Configuration (defaults to the global config)

    Returns:
        A CompletionProvider for the provider

    Raises:
        ValueError: If the provider is unknown
        ConfigurationError: If no API key is available
    """
    config = config or get_config()
    provider = provider.lower()

    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unknown provider: {provider}. "
            f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    api_key = api_key or config.providers.get_api_key(provider)
    if not api_key:
        raise ConfigurationError(
            f"No API key configured for {provider}",
            user_message=f"No API key found for {provider}. Log in again or set it in your config file.",
            provider=provider,
        )

    logger.info(f"Creating completion provider: {provider}")
    providers = config.providers

    if provider == "openai":
        return OpenAIProvider(api_key, base_url=providers.openai_base_url)

    elif provider == "fireworks":
        return FireworksProvider(api_key, base_url=providers.fireworks_base_url)

    elif provider == "anthropic":
        return AnthropicProvider(api_key)

    elif provider == "google-gemini":
        return GeminiProvider(api_key)

    elif provider == "huggingface":
        return HuggingFaceProvider(api_key)

    http_client = create_http_client(config.stream.http_timeout, config.stream.connect_timeout)
    if provider == "cohere":
        return CohereProvider(api_key, base_url=providers.cohere_base_url, http_client=http_client)

    return ReplicateProvider(api_key, base_url=providers.replicate_base_url, http_client=http_client)
