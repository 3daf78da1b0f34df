"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "kbc_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "kbc_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

SOURCE_REQUESTS = Counter(
    "kbc_source_requests_total",
    "Source adapter calls by outcome",
    labelnames=("source", "outcome"),
    registry=REGISTRY,
)

SOURCE_LATENCY = Histogram(
    "kbc_source_latency_seconds",
    "Latency of source adapter calls",
    labelnames=("source",),
    registry=REGISTRY,
)

LINK_CHECKS = Counter(
    "kbc_link_checks_total",
    "Locator reachability checks by outcome",
    labelnames=("outcome",),
    registry=REGISTRY,
)

CRAWL_DURATION = Histogram(
    "kbc_crawl_duration_seconds",
    "Help center crawl duration",
    labelnames=("status",),
    registry=REGISTRY,
)

CACHED_PASSAGES = Gauge(
    "kbc_cached_passages",
    "Number of passages in the help center snapshot",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SOURCE_REQUESTS",
    "SOURCE_LATENCY",
    "LINK_CHECKS",
    "CRAWL_DURATION",
    "CACHED_PASSAGES",
    "metrics_response",
]
