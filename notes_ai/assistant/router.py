from __future__ import annotations

from fastapi import APIRouter, Depends

from notes_ai.assistant.schemas import (
    AnswerIn,
    AnswerOut,
    ChatIn,
    ChatOut,
    SemanticSearchIn,
    SemanticSearchOutcome,
    SummarizeIn,
    SummaryOut,
)
from notes_ai.assistant.service import CompletionClient
from notes_ai.core.llm.deps import get_completion_client

router = APIRouter(prefix="/ai", tags=["assistant"])


@router.post("/search", response_model=SemanticSearchOutcome)
async def semantic_search(
    payload: SemanticSearchIn,
    completions: CompletionClient = Depends(get_completion_client),
) -> SemanticSearchOutcome:
    """Rank the given notes by semantic relevance to the query."""

    return await completions.semantic_search(payload.query, payload.notes, payload.limit)


@router.post("/summarize", response_model=SummaryOut)
async def summarize(
    payload: SummarizeIn,
    completions: CompletionClient = Depends(get_completion_client),
) -> SummaryOut:
    return SummaryOut(summary=await completions.summarize(payload.content))


@router.post("/answer", response_model=AnswerOut)
async def answer(
    payload: AnswerIn,
    completions: CompletionClient = Depends(get_completion_client),
) -> AnswerOut:
    """
    Answer a question from caller-supplied context.

    The model is told to admit when the context is insufficient rather than guess.
    """

    return AnswerOut(answer=await completions.answer(payload.question, payload.context))


@router.post("/chat", response_model=ChatOut)
async def chat(
    payload: ChatIn,
    completions: CompletionClient = Depends(get_completion_client),
) -> ChatOut:
    return ChatOut(reply=await completions.chat(payload.messages))
