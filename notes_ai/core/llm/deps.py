from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from notes_ai.assistant.service import CompletionClient
from notes_ai.core.llm.openai_client import OpenAIClient, OpenAIConfig
from notes_ai.core.settings import Settings, get_settings
from notes_ai.domain.exceptions import ConfigurationError

logger = logging.getLogger("notes_ai.llm")

MISSING_KEY_MESSAGE = (
    "OPENAI_API_KEY is not set in environment variables. Please set it in your .env file."
)


def mask_secret(secret: str) -> str:
    """Return `secret` with only the leading 8 and trailing 4 characters visible."""

    if len(secret) <= 12:
        return "***"
    return f"{secret[:8]}...{secret[-4:]}"


class ClientProvider:
    """
    Lazily construct and cache the single OpenAI client handle for this process.

    - The credential is read on every attempt until a handle exists; afterwards it is
      never re-validated.
    - A missing credential raises ConfigurationError and caches nothing, so a later call
      succeeds once configuration is fixed (and settings are reloaded).
    - Construction happens under a lock: concurrent first calls converge on one handle.
    """

    def __init__(
        self,
        *,
        settings_factory: Callable[[], Settings] = get_settings,
        client_factory: Callable[..., Any] = OpenAIClient,
    ):
        self._settings_factory = settings_factory
        self._client_factory = client_factory
        self._client: Any | None = None
        self._lock = threading.Lock()

    def get_client(self) -> OpenAIClient:
        client = self._client
        if client is not None:
            return client

        with self._lock:
            if self._client is not None:
                return self._client

            settings = self._settings_factory()
            api_key = (settings.openai_api_key or "").strip()
            if not api_key:
                logger.error("LLM client not configured", extra={"operation": "get_client"})
                raise ConfigurationError(MISSING_KEY_MESSAGE)

            config = OpenAIConfig(
                api_key=api_key,
                base_url=settings.openai_base_url,
                timeout_seconds=settings.openai_timeout_seconds,
            )
            try:
                client = self._client_factory(config=config)
            except Exception as exc:  # noqa: BLE001 - any construction failure is a config fault
                logger.error(
                    "LLM client initialization failed", extra={"operation": "get_client"}
                )
                raise ConfigurationError(f"Failed to initialize OpenAI client: {exc}") from exc

            logger.info(
                "LLM client initialized",
                extra={"operation": "get_client", "masked_key": mask_secret(api_key)},
            )
            self._client = client
            return client

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    def reset(self) -> None:
        """Drop the cached handle (tests / configuration reloads)."""

        with self._lock:
            self._client = None


@lru_cache
def get_client_provider() -> ClientProvider:
    return ClientProvider()


def get_completion_client() -> CompletionClient:
    """
    Dependency provider for CompletionClient.

    The handle itself is created lazily on the first operation, so a missing key surfaces
    as ConfigurationError from the operation (mapped to 503), not during dependency resolution.
    """

    return CompletionClient(provider=get_client_provider())
