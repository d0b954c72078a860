"""Tests for the provider factory."""

import pytest

from aiplayground.config import PlaygroundConfig, ProvidersConfig
from aiplayground.errors import ConfigurationError
from aiplayground.providers import (
    SUPPORTED_PROVIDERS,
    AnthropicProvider,
    CohereProvider,
    FireworksProvider,
    GeminiProvider,
    HuggingFaceProvider,
    OpenAIProvider,
    ReplicateProvider,
    create_provider,
)


class TestCreateProvider:
    """Test provider creation."""

    @pytest.mark.parametrize("provider_id,cls", [
        ("openai", OpenAIProvider),
        ("fireworks", FireworksProvider),
        ("anthropic", AnthropicProvider),
        ("google-gemini", GeminiProvider),
        ("huggingface", HuggingFaceProvider),
        ("cohere", CohereProvider),
        ("replicate", ReplicateProvider),
    ])
    def test_each_provider(self, provider_id, cls, config):
        provider = create_provider(provider_id, api_key="test-key", config=config)
        try:
            assert isinstance(provider, cls)
            assert provider.name == provider_id
        finally:
            provider.close()

    def test_supported_list(self):
        assert len(SUPPORTED_PROVIDERS) == 7

    def test_case_insensitive(self, config):
        provider = create_provider("Cohere", api_key="k", config=config)
        assert isinstance(provider, CohereProvider)
        provider.close()

    def test_unknown_provider(self, config):
        with pytest.raises(ValueError) as exc_info:
            create_provider("openai-assistant", api_key="k", config=config)
        assert "Supported providers" in str(exc_info.value)

    def test_missing_key(self, config):
        with pytest.raises(ConfigurationError) as exc_info:
            create_provider("openai", config=config)
        assert exc_info.value.provider == "openai"

    def test_configured_key_used(self):
        config = PlaygroundConfig(providers=ProvidersConfig(api_keys={"cohere": "co-key"}))
        provider = create_provider("cohere", config=config)
        assert provider.api_key == "co-key"
        provider.close()

    def test_configured_endpoints(self):
        config = PlaygroundConfig(providers=ProvidersConfig(
            cohere_base_url="https://cohere.internal/",
            replicate_base_url="https://replicate.internal",
        ))
        cohere = create_provider("cohere", api_key="k", config=config)
        replicate = create_provider("replicate", api_key="k", config=config)
        assert cohere.base_url == "https://cohere.internal"
        assert replicate.base_url == "https://replicate.internal"
        cohere.close()
        replicate.close()

    def test_timeouts_from_config(self):
        config = PlaygroundConfig(stream={"http_timeout": 5.0, "connect_timeout": 1.0})
        provider = create_provider("replicate", api_key="k", config=config)
        assert provider.http.timeout.read == 5.0
        assert provider.http.timeout.connect == 1.0
        provider.close()
