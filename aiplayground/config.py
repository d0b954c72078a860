"""
Configuration management for AI Playground.

Loads configuration from multiple sources in order of priority:
1. Environment variables (AIPLAYGROUND_*, <PROVIDER>_API_KEY)
2. User config (~/.config/aiplayground/config.toml)
3. System config (/etc/aiplayground/config.toml)
4. Defaults
"""

import os
import sys
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pydantic import BaseModel, ConfigDict, Field


# Environment variables holding each provider's key
PROVIDER_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "fireworks": ("FIREWORKS_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "google-gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "huggingface": ("HF_TOKEN", "HUGGINGFACE_API_KEY"),
    "cohere": ("COHERE_API_KEY",),
    "replicate": ("REPLICATE_API_TOKEN",),
}


class ProvidersConfig(BaseModel):
    """Provider selection, credentials and endpoints."""
    model_config = ConfigDict(extra="ignore")

    default_provider: str = Field(default="openai", description="Provider used when none is given")
    api_keys: dict[str, str] = Field(default_factory=dict, description="API keys keyed by provider id")
    openai_base_url: Optional[str] = Field(default=None, description="Override for the OpenAI endpoint")
    fireworks_base_url: str = Field(
        default="https://api.fireworks.ai/inference/v1",
        description="Fireworks OpenAI-compatible endpoint"
    )
    cohere_base_url: str = Field(default="https://api.cohere.ai", description="Cohere API root")
    replicate_base_url: str = Field(default="https://api.replicate.com", description="Replicate API root")

    def get_api_key(self, provider: str) -> Optional[str]:
        """Get the configured key for a provider, if any."""
        return self.api_keys.get(provider)


class StreamConfig(BaseModel):
    """HTTP streaming configuration."""
    http_timeout: float = Field(default=120.0, description="Read timeout for streaming requests in seconds")
    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")


class ChatConfig(BaseModel):
    """Conversation behaviour."""
    generate_titles: bool = Field(default=True, description="Generate a thread title from the first message")
    title_max_length: int = Field(default=25, description="Title length cap for providers that ramble")
    thinking_duration_ms: int = Field(default=30_000, description="Lifetime of the 'thinking' indicator")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="info", description="Log level")
    path: Optional[str] = Field(default=None, description="Optional log file path")


class PlaygroundConfig(BaseModel):
    """Main AI Playground configuration."""
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_paths() -> list[Path]:
    """Get configuration file paths in order of priority."""
    return [
        Path.home() / ".config" / "aiplayground" / "config.toml",
        Path("/etc/aiplayground/config.toml"),
    ]


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def merge_configs(base: dict, override: dict) -> dict:
    """Deep merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_env_overrides() -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    provider = os.environ.get("AIPLAYGROUND_PROVIDER")
    if provider:
        overrides.setdefault("providers", {})["default_provider"] = provider

    api_keys: dict[str, str] = {}
    for provider_id, env_vars in PROVIDER_KEY_ENV_VARS.items():
        for env_var in env_vars:
            value = os.environ.get(env_var)
            if value:
                api_keys[provider_id] = value
                break

    # Generic key applies to the selected provider
    generic_key = os.environ.get("AIPLAYGROUND_API_KEY")
    if generic_key:
        api_keys[provider or "__default__"] = generic_key

    if api_keys:
        overrides.setdefault("providers", {})["api_keys"] = api_keys

    if os.environ.get("AIPLAYGROUND_DEBUG"):
        overrides.setdefault("logging", {})["level"] = "debug"

    return overrides


def load_config() -> PlaygroundConfig:
    """Load configuration from all sources."""
    config_data: dict[str, Any] = {}

    # Load from files (lowest to highest priority)
    for path in reversed(get_config_paths()):
        file_config = load_toml_config(path)
        config_data = merge_configs(config_data, file_config)

    config_data = merge_configs(config_data, load_env_overrides())

    config = PlaygroundConfig(**config_data)

    # Resolve the generic key once the default provider is known
    generic_key = config.providers.api_keys.pop("__default__", None)
    if generic_key:
        config.providers.api_keys.setdefault(config.providers.default_provider, generic_key)

    return config


# Global config instance
_config: Optional[PlaygroundConfig] = None


def get_config() -> PlaygroundConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
