"""
Provider and model catalog for AI Playground.

The catalog is built once at startup with build_catalog() and handed to
whoever needs it. Entries are immutable.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

__all__ = [
    "ProviderInfo",
    "ModelInfo",
    "Catalog",
    "PROVIDERS",
    "MODELS",
    "TITLE_MODELS",
    "build_catalog",
]

PROMPT_TYPES = ("default", "openassistant", "llama2", "starchat", "cohere", "google-genai", "anthropic")
MODEL_TYPES = ("chat", "completion")


def _frozen(options: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(options))


@dataclass(frozen=True)
class ProviderInfo:
    """A provider as shown to the user."""
    id: str
    full_name: str
    default_options: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))


@dataclass(frozen=True)
class ModelInfo:
    """A model a thread can talk to."""
    id: str
    full_name: str
    provider: str
    prompt_type: str = "default"
    model_type: str = "chat"  # "chat" or "completion"
    options: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))


_OPENAI_OPTIONS = {"temperature": 0.9, "top_p": 1, "frequency_penalty": 0, "presence_penalty": 0, "max_tokens": 250}
_FIREWORKS_OPTIONS = {"temperature": 0.9, "top_p": 1, "max_tokens": 250}
_HF_OPTIONS = {"temperature": 0.9, "top_p": 0.9, "max_new_tokens": 250}
_COHERE_OPTIONS = {"temperature": 0.75, "max_tokens": 250, "frequency_penalty": 0, "presence_penalty": 0, "k": 0, "p": 0}
_REPLICATE_CHAT_OPTIONS = {"temperature": 0.7, "max_new_tokens": 128, "top_p": 0.9, "top_k": 50}
_REPLICATE_CODE_OPTIONS = {"temperature": 0.95, "max_tokens": 500, "top_p": 0.95, "top_k": 10}
_ANTHROPIC_CHAT_OPTIONS = {"max_tokens": 1024, "temperature": 0.9, "top_p": 1, "top_k": 50}
_ANTHROPIC_LEGACY_OPTIONS = {"max_tokens_to_sample": 1024, "temperature": 0.9, "top_p": 1, "top_k": 50}


PROVIDERS: tuple[ProviderInfo, ...] = (
    ProviderInfo("openai", "OpenAI", _frozen(_OPENAI_OPTIONS)),
    ProviderInfo("fireworks", "Fireworks.ai", _frozen(_FIREWORKS_OPTIONS)),
    ProviderInfo("huggingface", "Hugging Face", _frozen(_HF_OPTIONS)),
    ProviderInfo("cohere", "Cohere", _frozen(_COHERE_OPTIONS)),
    ProviderInfo("replicate", "Replicate", _frozen({})),
    ProviderInfo("google-gemini", "Google Gemini", _frozen({"temperature": 0.9})),
    ProviderInfo("anthropic", "Anthropic", _frozen(_ANTHROPIC_CHAT_OPTIONS)),
)


MODELS: tuple[ModelInfo, ...] = (
    # OpenAI
    ModelInfo("gpt-3.5-turbo", "GPT 3.5 Turbo", "openai", options=_frozen(_OPENAI_OPTIONS)),
    ModelInfo("gpt-3.5-turbo-16k", "GPT 3.5 Turbo 16K", "openai", options=_frozen(_OPENAI_OPTIONS)),
    ModelInfo("gpt-4", "GPT 4.0", "openai", options=_frozen(_OPENAI_OPTIONS)),
    ModelInfo(
        "gpt-3.5-turbo-instruct", "GPT 3.5 Turbo Instruct", "openai",
        model_type="completion", options=_frozen(_OPENAI_OPTIONS)
    ),
    # Fireworks
    ModelInfo(
        "accounts/fireworks/models/llama-v2-7b-chat", "Llama v2 7B Chat", "fireworks",
        options=_frozen(_FIREWORKS_OPTIONS)
    ),
    ModelInfo(
        "accounts/fireworks/models/llama-v2-13b", "Llama v2 13B", "fireworks",
        model_type="completion", options=_frozen({**_FIREWORKS_OPTIONS, "max_tokens": 20})
    ),
    ModelInfo(
        "accounts/fireworks/models/llama-v2-70b-chat", "Llama v2 70B Chat", "fireworks",
        options=_frozen(_FIREWORKS_OPTIONS)
    ),
    ModelInfo(
        "accounts/fireworks/models/llama-v2-13b-code-instruct", "Llama v2 13B Code Instruct", "fireworks",
        options=_frozen(_FIREWORKS_OPTIONS)
    ),
    ModelInfo(
        "accounts/fireworks/models/llama-v2-34b-code-instruct", "Llama v2 34B Code Instruct", "fireworks",
        options=_frozen(_FIREWORKS_OPTIONS)
    ),
    # Hugging Face
    ModelInfo(
        "OpenAssistant/oasst-sft-4-pythia-12b-epoch-3.5", "OpenAssistant Pythia 12B", "huggingface",
        prompt_type="openassistant", options=_frozen(_HF_OPTIONS)
    ),
    ModelInfo(
        "bigcode/starcoder", "Star Coder", "huggingface",
        model_type="completion", options=_frozen(_HF_OPTIONS)
    ),
    ModelInfo(
        "mistralai/Mistral-7B-v0.1", "Mistral 7B", "huggingface",
        model_type="completion", options=_frozen(_HF_OPTIONS)
    ),
    # Cohere
    ModelInfo(
        "command/chat", "Cohere Command Chat", "cohere",
        prompt_type="cohere", options=_frozen(_COHERE_OPTIONS)
    ),
    ModelInfo(
        "command-light/chat", "Cohere Command Chat - Light", "cohere",
        prompt_type="cohere", options=_frozen(_COHERE_OPTIONS)
    ),
    ModelInfo(
        "command", "Cohere Command Generate", "cohere",
        model_type="completion", options=_frozen(_COHERE_OPTIONS)
    ),
    ModelInfo(
        "command-light", "Cohere Command Generate - Light", "cohere",
        model_type="completion", options=_frozen(_COHERE_OPTIONS)
    ),
    # Replicate (ids are model version hashes)
    ModelInfo(
        "2c1608e18606fad2812020dc541930f2d0495ce32eee50074220b87300bc16e1", "Llama v2 70B Chat", "replicate",
        prompt_type="llama2", options=_frozen(_REPLICATE_CHAT_OPTIONS)
    ),
    ModelInfo(
        "83b6a56e7c828e667f21fd596c338fd4f0039b46bcfa18d973e8e70e455fda70", "Mistral 7B Instruct", "replicate",
        prompt_type="llama2", options=_frozen(_REPLICATE_CHAT_OPTIONS)
    ),
    ModelInfo(
        "7bf2629623162c0cf22ace9ec7a94b34045c1cfa2ed82586f05f3a60b1ca2da5", "Codellama 7B Instruct", "replicate",
        model_type="completion", options=_frozen(_REPLICATE_CODE_OPTIONS)
    ),
    ModelInfo(
        "b17fdb44c843000741367ae3d73e2bb710d7428a662238ddebbf4302db2b5422", "Codellama 34B Instruct", "replicate",
        model_type="completion", options=_frozen(_REPLICATE_CODE_OPTIONS)
    ),
    # Google
    ModelInfo(
        "gemini-pro", "Gemini Pro", "google-gemini",
        prompt_type="google-genai", options=_frozen({"temperature": 0.9})
    ),
    # Anthropic
    ModelInfo("claude-3-opus-20240229", "Claude 3 Opus", "anthropic", options=_frozen(_ANTHROPIC_CHAT_OPTIONS)),
    ModelInfo("claude-3-sonnet-20240229", "Claude 3 Sonnet", "anthropic", options=_frozen(_ANTHROPIC_CHAT_OPTIONS)),
    ModelInfo(
        "claude-2.1", "Claude 2.1", "anthropic",
        prompt_type="anthropic", model_type="completion", options=_frozen(_ANTHROPIC_LEGACY_OPTIONS)
    ),
    ModelInfo(
        "claude-2.0", "Claude 2", "anthropic",
        prompt_type="anthropic", model_type="completion", options=_frozen(_ANTHROPIC_LEGACY_OPTIONS)
    ),
)

# Completion models used to name new threads
TITLE_MODELS: Mapping[str, str] = MappingProxyType({
    "openai": "gpt-3.5-turbo-instruct",
    "replicate": "543b4e2b623ad7983a1889c4847fa017ed92276a1d6639d80414a5f1d26587ef",
    "fireworks": "accounts/fireworks/models/llama-v2-13b",
    "huggingface": "OpenAssistant/oasst-sft-4-pythia-12b-epoch-3.5",
    "cohere": "command",
})


class Catalog:
    """Immutable lookup table over providers and models."""

    def __init__(
        self,
        providers: tuple[ProviderInfo, ...],
        models: tuple[ModelInfo, ...],
        title_models: Mapping[str, str],
    ):
        self._providers = MappingProxyType({p.id: p for p in providers})
        self._models = MappingProxyType({(m.provider, m.id): m for m in models})
        self._title_models = MappingProxyType(dict(title_models))

    @property
    def providers(self) -> tuple[ProviderInfo, ...]:
        return tuple(self._providers.values())

    def get_provider(self, provider_id: str) -> Optional[ProviderInfo]:
        """Get provider information by ID."""
        return self._providers.get(provider_id)

    def provider_name(self, provider_id: str) -> str:
        """Get the display name for a provider, falling back to its ID."""
        provider = self.get_provider(provider_id)
        return provider.full_name if provider else provider_id

    def models_for(self, provider_id: str) -> list[ModelInfo]:
        """Get the models offered by one provider, in catalog order."""
        return [m for (p, _), m in self._models.items() if p == provider_id]

    def get_model(self, model_id: str, provider_id: Optional[str] = None) -> Optional[ModelInfo]:
        """Get model information by ID, optionally restricted to one provider."""
        if provider_id is not None:
            return self._models.get((provider_id, model_id))
        for (_, mid), model in self._models.items():
            if mid == model_id:
                return model
        return None

    def model_options(
        self,
        model_id: str,
        provider_id: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Build the option bag for a request.

        Starts from the model's defaults (or the provider's when the model
        is not listed) and applies overrides for keys the model accepts.
        A max_tokens override is applied to max_new_tokens for models that
        use that name.

        Args:
            model_id: The model ID
            provider_id: The provider the model belongs to
            overrides: Per-thread values set by the user

        Returns:
            A fresh, mutable option dict
        """
        model = self.get_model(model_id, provider_id)
        if model is not None:
            options = dict(model.options)
        else:
            provider = self.get_provider(provider_id)
            options = dict(provider.default_options) if provider else {}

        for key, value in (overrides or {}).items():
            if key in options:
                options[key] = value
            elif key == "max_tokens" and "max_new_tokens" in options:
                options["max_new_tokens"] = value
        return options

    def title_model_for(self, provider_id: str) -> Optional[str]:
        """Get the completion model used to title threads, if the provider has one."""
        return self._title_models.get(provider_id)


def build_catalog(
    providers: tuple[ProviderInfo, ...] = PROVIDERS,
    models: tuple[ModelInfo, ...] = MODELS,
    title_models: Mapping[str, str] = TITLE_MODELS,
) -> Catalog:
    """Construct the catalog used by the application."""
    for model in models:
        if model.prompt_type not in PROMPT_TYPES:
            raise ValueError(f"Unknown prompt type {model.prompt_type!r} for {model.id}")
        if model.model_type not in MODEL_TYPES:
            raise ValueError(f"Unknown model type {model.model_type!r} for {model.id}")
    return Catalog(providers, models, title_models)
