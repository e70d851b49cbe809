"""HTTP logging middleware.

Design goals:
- Log *metadata only*: notes, questions and completions travel in bodies and are never logged.
- Generate or propagate X-Request-ID for correlation.
- Expose the request id to downstream loggers (LLM calls) through a context variable.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("notes_ai.http")

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

# Set for the duration of a request; read by the JSON log formatter.
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_or_create_request_id(*, request: Request) -> str:
    """Return a safe request id, either propagated or newly generated.

    Only a narrow character set and length are accepted to avoid log injection;
    anything else is replaced by a new UUID4.
    """

    candidate = request.headers.get(REQUEST_ID_HEADER)
    if candidate and _SAFE_REQUEST_ID_PATTERN.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


def safe_route_label(*, request: Request) -> str:
    """Route template (e.g. /ai/search) for the request, or "unmatched"."""

    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if isinstance(path, str) and path:
        return path
    return "unmatched"


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    """Log one record per request with method, route, status and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = get_or_create_request_id(request=request)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001 - we must log unexpected exceptions with stack trace
            logger.exception(
                "Unhandled exception while processing request",
                extra={
                    "request_id": request_id,
                    "http_method": request.method,
                    "request_path": safe_route_label(request=request),
                    "status_code": 500,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                },
            )
            raise
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "http_method": request.method,
                "request_path": safe_route_label(request=request),
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            },
        )
        return response
