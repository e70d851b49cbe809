from __future__ import annotations

from collections.abc import Sequence

from notes_ai.assistant.schemas import SearchableItem

# Bounds prompt size: only this many leading characters of each note are sent.
NOTE_SNIPPET_CHARS = 200

SEARCH_SYSTEM_PROMPT = (
    "You are a helpful assistant that analyzes and retrieves relevant information. "
    "Always respond with valid JSON."
)
SUMMARY_SYSTEM_PROMPT = "You are a helpful assistant that summarizes notes concisely."
ANSWER_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided context. "
    "If the context doesn't contain enough information, say so."
)
CHAT_SYSTEM_PROMPT = (
    "You are a helpful assistant that helps users with their notes and information retrieval."
)


def build_search_prompt(*, query: str, notes: Sequence[SearchableItem]) -> str:
    """
    Create the user prompt for semantic search.

    Each note is listed by index so the model can answer with indices only; the service
    maps them back to the caller's notes.
    """

    note_lines = "\n".join(
        f"[{i}] {note.path}: {note.content[:NOTE_SNIPPET_CHARS]}..."
        for i, note in enumerate(notes)
    )
    return (
        "You are a helpful assistant that helps find relevant notes based on semantic meaning.\n"
        "Given the following notes and a query, return the most relevant notes in order of "
        "relevance.\n\n"
        f'Query: "{query}"\n\n'
        "Notes:\n"
        f"{note_lines}\n\n"
        "Return a JSON object with:\n"
        "- reasoning: A brief explanation of why these notes are relevant\n"
        "- results: An array of indices of the most relevant notes in order of relevance"
    )


def build_summary_prompt(*, content: str) -> str:
    return (
        "Please provide a concise summary of the following note content:\n\n"
        f"{content}\n\n"
        "Summary:"
    )


def build_answer_prompt(*, question: str, context: str) -> str:
    return (
        "Based on the following context, please answer the question. "
        "If the context doesn't contain enough information, say so.\n\n"
        f"Context: {context}\n\n"
        f"Question: {question}\n\n"
        "Answer:"
    )
