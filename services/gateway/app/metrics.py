from __future__ import annotations

from typing import Any

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNTER = Counter(
    "chatvis_gateway_http_requests_total",
    "Total gateway HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "chatvis_gateway_http_latency_seconds",
    "Gateway request latency",
    ["method", "path"],
    buckets=(0.01, 0.03, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
ANSWER_LATENCY = Histogram(
    "chatvis_gateway_answer_latency_seconds",
    "Question to sanitized answer latency",
    buckets=(0.05, 0.1, 0.2, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
)
ANSWER_COUNTER = Counter(
    "chatvis_gateway_answers_total",
    "Answers produced by outcome",
    ["outcome"],
)


def record_http(method: str, path: str, status: int, duration_s: float) -> None:
    REQUEST_COUNTER.labels(method=method, path=path, status=str(status)).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(duration_s)


def record_answer(outcome: str, duration_s: float) -> None:
    ANSWER_COUNTER.labels(outcome=outcome).inc()
    ANSWER_LATENCY.observe(duration_s)


def metrics_response() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST


def route_label(scope: dict[str, Any]) -> str:
    """Path label for a request: the matched route template, never the raw URL."""
    path = getattr(scope.get("route"), "path", None)
    return path if isinstance(path, str) and path else "unmatched"
