from __future__ import annotations


class NotesAIError(Exception):
    """Base error for the notes assistant."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(NotesAIError):
    """Raised when the LLM client cannot be configured (missing key, failed construction).

    Fatal for the calling operation; never retried.
    """


class InvalidArgumentError(NotesAIError):
    """Raised when a caller passes malformed input. No network call is attempted."""


class UpstreamRequestError(NotesAIError):
    """Raised when the remote completion call itself fails (transport or provider error)."""


class UpstreamResponseError(NotesAIError):
    """Raised when the provider answered but the text could not be interpreted."""


def excerpt(text: str, limit: int = 200) -> str:
    """Return a bounded excerpt of `text` for error messages."""

    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
