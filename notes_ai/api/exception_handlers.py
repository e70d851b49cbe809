from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notes_ai.domain.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    NotesAIError,
    UpstreamRequestError,
    UpstreamResponseError,
)

logger = logging.getLogger("notes_ai.errors")


def _log_handled_error(*, request: Request, status_code: int, error: str) -> None:
    # Metadata only: no bodies, no query values, no upstream payloads.
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    logger.info(
        "Request failed",
        extra={
            "request_id": request_id,
            "http_method": request.method,
            "request_path": request.url.path,  # no query string
            "status_code": status_code,
            "error": error,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        _log_handled_error(request=request, status_code=400, error="invalid_argument")
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _log_handled_error(request=request, status_code=503, error="configuration")
        return JSONResponse(status_code=503, content={"detail": "LLM service unavailable"})

    @app.exception_handler(UpstreamRequestError)
    @app.exception_handler(UpstreamResponseError)
    async def handle_upstream_error(request: Request, exc: NotesAIError) -> JSONResponse:
        _log_handled_error(request=request, status_code=502, error="upstream")
        return JSONResponse(status_code=502, content={"detail": "LLM service failed"})
