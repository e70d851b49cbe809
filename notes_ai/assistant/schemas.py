from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ChatRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class SearchableItem(BaseModel):
    path: str = Field(description="Identifier of the note (usually its vault-relative path).")
    content: str = Field(description="Full note text; only a short prefix is sent to the model.")


SearchResult = SearchableItem


class SemanticSearchOutcome(BaseModel):
    results: list[SearchResult]
    reasoning: str


class _LLMSearchJSON(BaseModel):
    """
    Internal schema for the semantic-search response payload.

    Absent/null fields fall back to default policies in the service; a present field of the
    wrong type fails validation.
    """

    reasoning: str | None = None
    results: list[Any] | None = None


class SemanticSearchIn(BaseModel):
    query: str
    notes: list[SearchableItem]
    limit: int = 5


class SummarizeIn(BaseModel):
    content: str


class SummaryOut(BaseModel):
    summary: str


class AnswerIn(BaseModel):
    question: str
    context: str


class AnswerOut(BaseModel):
    answer: str


class ChatIn(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)


class ChatOut(BaseModel):
    reply: str
