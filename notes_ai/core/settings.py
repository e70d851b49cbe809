from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "notes-ai"
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )

    # LLM integration (OpenAI-compatible chat completions)
    # The key is only ever logged in masked form.
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
        description="OpenAI API key (required for every /ai endpoint).",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias=AliasChoices("OPENAI_BASE_URL", "openai_base_url"),
        description="Base URL for OpenAI API (override for proxies/emulators).",
    )
    openai_model: str = Field(
        default="gpt-4-turbo-preview",
        validation_alias=AliasChoices("OPENAI_MODEL", "openai_model"),
        description="Model used for semantic search, summaries and question answering.",
    )
    openai_chat_model: str = Field(
        default="gpt-4-turbo",
        validation_alias=AliasChoices("OPENAI_CHAT_MODEL", "openai_chat_model"),
        description="Model used for free-form chat.",
    )
    openai_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("OPENAI_TIMEOUT_SECONDS", "openai_timeout_seconds"),
        description="Transport timeout for OpenAI requests (seconds). Unset means no deadline.",
    )

    @property
    def is_development(self) -> bool:
        return str(self.app_env).strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
