from __future__ import annotations

import time
from typing import cast

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from notes_ai.core.middleware.http_logging import safe_route_label

metrics_router = APIRouter(tags=["monitoring"])

# Labels are route templates or fixed values only; never note paths or query text.

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=("method", "route", "status_code"),
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=("method", "route", "status_code"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

llm_requests_total = Counter(
    "llm_requests_total",
    "Total LLM completion requests",
    labelnames=("operation", "outcome"),
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "LLM completion round-trip duration in seconds",
    labelnames=("operation",),
    # Completions are slow; buckets reach well past typical HTTP latencies.
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 80.0),
)


def record_llm_call(*, operation: str, outcome: str, duration_seconds: float) -> None:
    llm_requests_total.labels(operation=operation, outcome=outcome).inc()
    llm_request_duration_seconds.labels(operation=operation).observe(duration_seconds)


class PrometheusMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route_label = safe_route_label(request=request)
            method = request.method
            code = str(int(status_code))
            duration = time.perf_counter() - started
            http_requests_total.labels(method=method, route=route_label, status_code=code).inc()
            http_request_duration_seconds.labels(
                method=method, route=route_label, status_code=code
            ).observe(duration)


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    payload = generate_latest()
    return Response(content=cast(bytes, payload), media_type=CONTENT_TYPE_LATEST)
