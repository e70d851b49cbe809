from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from notes_ai.assistant.prompt import (
    ANSWER_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    SEARCH_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_answer_prompt,
    build_search_prompt,
    build_summary_prompt,
)
from notes_ai.assistant.schemas import (
    ChatMessage,
    ChatRole,
    SearchableItem,
    SearchResult,
    SemanticSearchOutcome,
    _LLMSearchJSON,
)
from notes_ai.core.metrics import record_llm_call
from notes_ai.core.settings import Settings, get_settings
from notes_ai.domain.exceptions import (
    InvalidArgumentError,
    NotesAIError,
    UpstreamRequestError,
    UpstreamResponseError,
    excerpt,
)

if TYPE_CHECKING:
    from notes_ai.core.llm.deps import ClientProvider

logger = logging.getLogger("notes_ai.assistant")

# Default-value policies: substituted when the model gives no usable text for a field.
NO_NOTES_REASONING = "No notes available to search."
NO_REASONING_PLACEHOLDER = "No reasoning provided."
NO_SUMMARY_PLACEHOLDER = "No summary available."
NO_ANSWER_PLACEHOLDER = "I could not generate an answer."
NO_CHAT_REPLY_PLACEHOLDER = "I apologize, but I could not generate a response."

SEARCH_TEMPERATURE = 0.3
SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 200
ANSWER_TEMPERATURE = 0.3
ANSWER_MAX_TOKENS = 500
CHAT_TEMPERATURE = 0.7


def _require_text(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{name} must be a non-empty string")
    return value


def _coerce_notes(notes: Sequence[Any]) -> list[SearchableItem]:
    items: list[SearchableItem] = []
    for i, note in enumerate(notes):
        if isinstance(note, SearchableItem):
            items.append(note)
            continue
        if not isinstance(note, Mapping):
            raise InvalidArgumentError(f"Note at index {i} must have 'path' and 'content'")
        try:
            items.append(SearchableItem.model_validate(note))
        except ValidationError as exc:
            raise InvalidArgumentError(
                f"Note at index {i} must have string 'path' and 'content'"
            ) from exc
    return items


def parse_search_response(content: str) -> _LLMSearchJSON:
    """Parse the model's semantic-search text into a typed record."""

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise UpstreamResponseError(
            f"Failed to parse response from OpenAI: {exc}. Content: {excerpt(content)}"
        ) from exc

    if not isinstance(data, dict):
        raise UpstreamResponseError(
            f"Response from OpenAI must be a JSON object. Content: {excerpt(content)}"
        )

    try:
        return _LLMSearchJSON.model_validate(data)
    except ValidationError as exc:
        raise UpstreamResponseError(
            f"Response from OpenAI has an unexpected shape. Content: {excerpt(content)}"
        ) from exc


def resolve_indices(
    indices: Sequence[Any], notes: Sequence[SearchableItem], limit: int
) -> list[SearchResult]:
    """
    Map model-chosen indices back to notes, in the model's order.

    Entries that are not integers or fall outside the notes are dropped; the model's
    choices are not guaranteed valid.
    """

    resolved: list[SearchResult] = []
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int):
            continue
        if 0 <= index < len(notes):
            resolved.append(notes[index])
    return resolved[:limit]


class CompletionClient:
    """Note search, summarization, question answering and chat over one shared LLM handle."""

    def __init__(self, *, provider: ClientProvider, settings: Settings | None = None):
        self._provider = provider
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def _complete(
        self,
        *,
        operation: str,
        failure_prefix: str,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int | None = None,
        json_response: bool = False,
        parse: Callable[[str | None], Any] | None = None,
    ) -> Any:
        # ConfigurationError propagates unchanged.
        client = self._provider.get_client()

        log_extra = {
            "operation": operation,
            "model": model,
            "prompt_chars": sum(len(m["content"]) for m in messages),
        }
        logger.info("LLM request started", extra=log_extra)

        started = time.perf_counter()
        try:
            content = await client.complete(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                json_response=json_response,
            )
        except NotesAIError as exc:
            record_llm_call(
                operation=operation, outcome="error", duration_seconds=time.perf_counter() - started
            )
            logger.warning("LLM request failed", extra={**log_extra, "outcome": "error"})
            raise type(exc)(f"{failure_prefix}: {exc.message}") from exc
        except Exception as exc:  # noqa: BLE001 - provider failures are surfaced, never swallowed
            record_llm_call(
                operation=operation, outcome="error", duration_seconds=time.perf_counter() - started
            )
            logger.warning("LLM request failed", extra={**log_extra, "outcome": "error"})
            raise UpstreamRequestError(f"{failure_prefix}: {exc}") from exc

        result: Any = content
        if parse is not None:
            try:
                result = parse(content)
            except UpstreamResponseError as exc:
                record_llm_call(
                    operation=operation,
                    outcome="invalid_response",
                    duration_seconds=time.perf_counter() - started,
                )
                logger.warning(
                    "LLM response could not be parsed",
                    extra={**log_extra, "outcome": "invalid_response"},
                )
                raise UpstreamResponseError(f"{failure_prefix}: {exc.message}") from exc

        duration = time.perf_counter() - started
        record_llm_call(operation=operation, outcome="ok", duration_seconds=duration)
        logger.info(
            "LLM request completed",
            extra={**log_extra, "outcome": "ok", "duration_ms": round(duration * 1000.0, 2)},
        )
        return result

    async def semantic_search(
        self, query: str, notes: Sequence[SearchableItem], limit: int = 5
    ) -> SemanticSearchOutcome:
        _require_text(query, name="Query")
        if not isinstance(notes, (list, tuple)):
            raise InvalidArgumentError("Notes must be a list")
        if not notes:
            return SemanticSearchOutcome(results=[], reasoning=NO_NOTES_REASONING)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidArgumentError("Limit must be a non-negative integer")

        items = _coerce_notes(notes)
        prompt = build_search_prompt(query=query, notes=items)
        parsed: _LLMSearchJSON = await self._complete(
            operation="semantic_search",
            failure_prefix="Error performing semantic search",
            model=self.settings.openai_model,
            messages=[
                {"role": ChatRole.SYSTEM.value, "content": SEARCH_SYSTEM_PROMPT},
                {"role": ChatRole.USER.value, "content": prompt},
            ],
            temperature=SEARCH_TEMPERATURE,
            json_response=True,
            parse=lambda content: parse_search_response(content or "{}"),
        )

        return SemanticSearchOutcome(
            results=resolve_indices(parsed.results or [], items, limit),
            reasoning=parsed.reasoning or NO_REASONING_PLACEHOLDER,
        )

    async def summarize(self, content: str) -> str:
        _require_text(content, name="Content")

        text = await self._complete(
            operation="summarize",
            failure_prefix="Failed to generate summary",
            model=self.settings.openai_model,
            messages=[
                {"role": ChatRole.SYSTEM.value, "content": SUMMARY_SYSTEM_PROMPT},
                {"role": ChatRole.USER.value, "content": build_summary_prompt(content=content)},
            ],
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS,
        )
        return (text or "").strip() or NO_SUMMARY_PLACEHOLDER

    async def answer(self, question: str, context: str) -> str:
        _require_text(question, name="Question")
        _require_text(context, name="Context")

        prompt = build_answer_prompt(question=question, context=context)
        text = await self._complete(
            operation="answer",
            failure_prefix="Failed to generate answer",
            model=self.settings.openai_model,
            messages=[
                {"role": ChatRole.SYSTEM.value, "content": ANSWER_SYSTEM_PROMPT},
                {"role": ChatRole.USER.value, "content": prompt},
            ],
            temperature=ANSWER_TEMPERATURE,
            max_tokens=ANSWER_MAX_TOKENS,
        )
        return (text or "").strip() or NO_ANSWER_PLACEHOLDER

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        if not isinstance(messages, (list, tuple)):
            raise InvalidArgumentError("Messages must be a list")

        # The fixed system message always leads; caller messages keep their order.
        outbound = [{"role": ChatRole.SYSTEM.value, "content": CHAT_SYSTEM_PROMPT}]
        for i, message in enumerate(messages):
            try:
                msg = ChatMessage.model_validate(message)
            except ValidationError as exc:
                raise InvalidArgumentError(
                    f"Message at index {i} must have a valid 'role' and string 'content'"
                ) from exc
            outbound.append({"role": msg.role.value, "content": msg.content})

        text = await self._complete(
            operation="chat",
            failure_prefix="Failed to generate chat response",
            model=self.settings.openai_chat_model,
            messages=outbound,
            temperature=CHAT_TEMPERATURE,
        )
        return (text or "").strip() or NO_CHAT_REPLY_PLACEHOLDER
