from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

from notes_ai.domain.exceptions import UpstreamRequestError, UpstreamResponseError, excerpt


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str
    base_url: str
    timeout_seconds: float | None = None


class OpenAIClient:
    """
    Minimal OpenAI chat-completions client.

    Design notes:
    - No logging in this module (prompts/outputs may contain private notes).
    - Stateless requests: every call opens its own HTTP connection pool, so one instance
      can be shared across event loops and threads.
    - Returns the raw text of the first choice; callers own parsing and placeholders.
    """

    def __init__(
        self,
        *,
        config: OpenAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # Fail at construction (not on first request) when the base URL is unusable.
        try:
            url = httpx.URL(config.base_url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid OpenAI base URL: {config.base_url!r}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"Invalid OpenAI base URL: {config.base_url!r}")
        self._config = config
        self._transport = transport

    @property
    def config(self) -> OpenAIConfig:
        return self._config

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int | None = None,
        json_response: bool = False,
    ) -> str | None:
        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "messages": messages,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_response:
            # Ask the API to enforce JSON output (still validated by callers).
            payload["response_format"] = {"type": "json_object"}

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise UpstreamRequestError(f"LLM request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamRequestError(f"LLM request failed: {exc}") from exc

        if resp.status_code != 200:
            raise UpstreamRequestError(
                f"LLM service returned HTTP {resp.status_code}: {excerpt(resp.text)}"
            )

        try:
            data = resp.json()
        except ValueError as exc:
            # JSONDecodeError or UnicodeDecodeError; both mean an unreadable envelope.
            body = resp.content.decode("utf-8", errors="replace")
            raise UpstreamResponseError(
                f"LLM response envelope was not valid JSON. Content: {excerpt(body)}"
            ) from exc

        return _first_choice_content(data)


def _first_choice_content(data: Any) -> str | None:
    """Return the first choice's message content, or None when the provider sent no text."""

    if not isinstance(data, dict):
        raise UpstreamResponseError(
            f"LLM response envelope must be an object. Content: {excerpt(json.dumps(data))}"
        )
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content:
        return content
    return None
