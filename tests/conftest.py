"""Pytest configuration and shared fixtures."""

from typing import Iterator

import pytest

from aiplayground.catalog import build_catalog
from aiplayground.config import PROVIDER_KEY_ENV_VARS, PlaygroundConfig, reset_config
from aiplayground.providers.base import CompletionProvider, CompletionRequest, StreamFrame
from aiplayground.streaming import CallbackSet


class CallbackRecorder:
    """Records every callback invocation in order."""

    def __init__(self):
        self.events = []

    @property
    def callbacks(self) -> CallbackSet:
        return CallbackSet(
            on_start=lambda: self.events.append(("start", None)),
            on_token=lambda text: self.events.append(("token", text)),
            on_final=lambda text: self.events.append(("final", text)),
        )

    def of(self, kind: str) -> list:
        return [value for name, value in self.events if name == kind]


class FakeProvider(CompletionProvider):
    """Provider that replays canned frames and records requests."""

    name = "fake"

    def __init__(self, chat_frames=(), completion_frames=()):
        self.chat_frames = list(chat_frames)
        self.completion_frames = list(completion_frames)
        self.requests: list[tuple[str, CompletionRequest]] = []
        self.closed = False

    def stream_chat(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        self.requests.append(("chat", request))
        return iter(list(self.chat_frames))

    def stream_completion(self, request: CompletionRequest) -> Iterator[StreamFrame]:
        self.requests.append(("completion", request))
        return iter(list(self.completion_frames))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recorder():
    """Create a fresh callback recorder."""
    return CallbackRecorder()


@pytest.fixture
def catalog():
    """The application catalog."""
    return build_catalog()


@pytest.fixture
def config():
    """A default configuration that ignores the environment."""
    return PlaygroundConfig()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove provider keys and config files from the environment."""
    for names in PROVIDER_KEY_ENV_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    for name in ("AIPLAYGROUND_PROVIDER", "AIPLAYGROUND_API_KEY", "AIPLAYGROUND_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_config()
    yield tmp_path
    reset_config()


# Markers for slow tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
