from __future__ import annotations

from fastapi import FastAPI

from notes_ai.api.exception_handlers import register_exception_handlers
from notes_ai.api.schemas import HealthOut
from notes_ai.assistant.router import router as assistant_router
from notes_ai.core.logging import setup_logging
from notes_ai.core.metrics import PrometheusMetricsMiddleware, metrics_router
from notes_ai.core.middleware.http_logging import HttpLoggingMiddleware

setup_logging()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Notes Assistant API",
        description=(
            "LLM-backed helpers for a personal notes vault.\n\n"
            "Design principles:\n"
            "- Callers supply the notes and context; nothing is stored server-side.\n"
            "- Each request is one independent completion round trip (no retries, no "
            "streaming, no sessions).\n"
            "- Logging and metrics carry metadata only, never note contents or completions."
        ),
        openapi_tags=[
            {
                "name": "health",
                "description": (
                    "Basic uptime and readiness checks for load balancers and monitoring."
                ),
            },
            {
                "name": "assistant",
                "description": (
                    "Semantic note search, summarization, question answering and chat."
                ),
            },
            {
                "name": "monitoring",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running.\n\n"
            "This endpoint does not contact the LLM provider and does not require "
            "OPENAI_API_KEY to be set."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    app.include_router(metrics_router)
    app.include_router(assistant_router)
    return app


app = create_app()
