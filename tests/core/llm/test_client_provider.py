from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from notes_ai.core.llm.deps import (
    ClientProvider,
    get_client_provider,
    get_completion_client,
    mask_secret,
)
from notes_ai.core.llm.openai_client import OpenAIClient
from notes_ai.core.settings import Settings
from notes_ai.domain.exceptions import ConfigurationError

API_KEY = "sk-proj-ABCDEFGHIJKLMNOPQRSTUVWXYZ-9876"


class _CountingFactory:
    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.configs: list = []
        self._lock = threading.Lock()

    def __call__(self, *, config):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.configs.append(config)
        return object()


def test_mask_secret_keeps_leading_8_and_trailing_4() -> None:
    assert mask_secret(API_KEY) == "sk-proj-...9876"


def test_mask_secret_hides_short_keys_entirely() -> None:
    assert mask_secret("sk-short") == "***"
    assert mask_secret("123456789012") == "***"


@pytest.mark.parametrize("api_key", [None, "", "   "])
def test_missing_key_raises_configuration_error_with_guidance(api_key: str | None) -> None:
    factory = _CountingFactory()
    provider = ClientProvider(
        settings_factory=lambda: Settings(openai_api_key=api_key), client_factory=factory
    )

    with pytest.raises(ConfigurationError) as exc_info:
        provider.get_client()

    assert "OPENAI_API_KEY" in exc_info.value.message
    assert "set it in your .env file" in exc_info.value.message
    assert factory.configs == []
    assert provider.is_initialized is False


def test_missing_key_is_recoverable_once_configured() -> None:
    current = {"settings": Settings(openai_api_key=None)}
    factory = _CountingFactory()
    provider = ClientProvider(settings_factory=lambda: current["settings"], client_factory=factory)

    with pytest.raises(ConfigurationError):
        provider.get_client()

    current["settings"] = Settings(openai_api_key=API_KEY)
    handle = provider.get_client()

    assert handle is not None
    assert len(factory.configs) == 1
    assert factory.configs[0].api_key == API_KEY


def test_handle_is_built_once_and_credential_not_revalidated() -> None:
    calls = {"settings": 0}

    def settings_factory() -> Settings:
        calls["settings"] += 1
        return Settings(openai_api_key=API_KEY)

    factory = _CountingFactory()
    provider = ClientProvider(settings_factory=settings_factory, client_factory=factory)

    first = provider.get_client()
    second = provider.get_client()
    third = provider.get_client()

    assert first is second is third
    assert len(factory.configs) == 1
    assert calls["settings"] == 1


def test_config_carries_base_url_and_timeout() -> None:
    factory = _CountingFactory()
    settings = Settings(
        openai_api_key=API_KEY,
        openai_base_url="https://proxy.test/v1",
        openai_timeout_seconds=12.5,
    )
    ClientProvider(settings_factory=lambda: settings, client_factory=factory).get_client()

    config = factory.configs[0]
    assert config.base_url == "https://proxy.test/v1"
    assert config.timeout_seconds == 12.5


def test_construction_failure_is_wrapped_in_configuration_error() -> None:
    def broken_factory(*, config):
        raise RuntimeError("proxy settings rejected")

    provider = ClientProvider(
        settings_factory=lambda: Settings(openai_api_key=API_KEY), client_factory=broken_factory
    )

    with pytest.raises(ConfigurationError) as exc_info:
        provider.get_client()

    assert exc_info.value.message == (
        "Failed to initialize OpenAI client: proxy settings rejected"
    )
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert provider.is_initialized is False


def test_invalid_base_url_surfaces_as_configuration_error() -> None:
    provider = ClientProvider(
        settings_factory=lambda: Settings(openai_api_key=API_KEY, openai_base_url="not a url")
    )

    with pytest.raises(ConfigurationError, match="Failed to initialize OpenAI client"):
        provider.get_client()


def test_successful_construction_logs_masked_key_only(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="notes_ai.llm")
    provider = ClientProvider(settings_factory=lambda: Settings(openai_api_key=API_KEY))

    handle = provider.get_client()

    assert isinstance(handle, OpenAIClient)
    records = [r for r in caplog.records if r.name == "notes_ai.llm"]
    assert len(records) == 1
    assert records[0].__dict__["masked_key"] == "sk-proj-...9876"
    for record in caplog.records:
        assert API_KEY not in record.getMessage()
        assert API_KEY not in str(record.__dict__)


def test_concurrent_first_calls_construct_exactly_one_handle() -> None:
    factory = _CountingFactory(delay=0.05)
    provider = ClientProvider(
        settings_factory=lambda: Settings(openai_api_key=API_KEY), client_factory=factory
    )

    with ThreadPoolExecutor(max_workers=8) as pool:
        handles = list(pool.map(lambda _: provider.get_client(), range(8)))

    assert len(factory.configs) == 1
    assert all(h is handles[0] for h in handles)


def test_reset_drops_cached_handle() -> None:
    factory = _CountingFactory()
    provider = ClientProvider(
        settings_factory=lambda: Settings(openai_api_key=API_KEY), client_factory=factory
    )

    first = provider.get_client()
    provider.reset()
    second = provider.get_client()

    assert first is not second
    assert len(factory.configs) == 2


def test_process_wide_provider_is_shared(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", API_KEY)

    assert get_client_provider() is get_client_provider()
    a = get_completion_client()
    b = get_completion_client()
    assert a._provider is b._provider is get_client_provider()
