from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from notes_ai.assistant.service import CompletionClient
from notes_ai.core.llm.deps import ClientProvider, get_client_provider
from notes_ai.core.settings import Settings, get_settings
from notes_ai.main import create_app

TEST_API_KEY = "sk-test-0123456789abcdefWXYZ"

_OPENAI_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "OPENAI_CHAT_MODEL",
    "OPENAI_TIMEOUT_SECONDS",
)


class StubHandle:
    """Stand-in for OpenAIClient that records every outbound request."""

    def __init__(self, *, config: Any = None):
        self.config = config
        self.reply: str | None = "stub reply"
        self.error: Exception | None = None
        self.calls: list[dict[str, Any]] = []

    async def complete(self, **kwargs: Any) -> str | None:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _OPENAI_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # Settings and the process-wide provider are cached; clear so each test starts fresh.
    get_settings.cache_clear()
    get_client_provider.cache_clear()
    yield
    get_settings.cache_clear()
    get_client_provider.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key=TEST_API_KEY)


@pytest.fixture
def stub_handle() -> StubHandle:
    return StubHandle()


@pytest.fixture
def provider(settings: Settings, stub_handle: StubHandle) -> ClientProvider:
    return ClientProvider(settings_factory=lambda: settings, client_factory=lambda **_: stub_handle)


@pytest.fixture
def completion_client(provider: ClientProvider, settings: Settings) -> CompletionClient:
    return CompletionClient(provider=provider, settings=settings)


@pytest.fixture
def client():
    app = create_app()
    with TestClient(app) as c:
        yield c
