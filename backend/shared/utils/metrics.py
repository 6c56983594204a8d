"""
Lightweight metrics collection for Courtside.
Wraps prometheus_client with async-safe patterns.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
REFRESH_CYCLES = Counter(
    "courtside_refresh_cycles_total",
    "Total schedule refresh cycles",
    ["status"],
)
UPSTREAM_REQUESTS = Counter(
    "courtside_upstream_requests_total",
    "Total requests to the upstream polling endpoint",
    ["status"],
)
MATCHES_REJECTED = Counter(
    "courtside_matches_rejected_total",
    "Raw matches excluded from the snapshot because they failed validation",
)

# ── Histograms ──────────────────────────────────────────────────────────
UPSTREAM_LATENCY = Histogram(
    "courtside_upstream_latency_seconds",
    "Upstream polling request latency in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
REFRESH_DURATION = Histogram(
    "courtside_refresh_cycle_seconds",
    "Wall time of a full fetch-normalize-write cycle",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ── Gauges ──────────────────────────────────────────────────────────────
SCHEDULE_MATCHES = Gauge(
    "courtside_schedule_matches",
    "Matches in the last written snapshot",
)
SCHEDULE_COURTS = Gauge(
    "courtside_schedule_courts",
    "Courts in the last written snapshot",
)
LAST_SUCCESS = Gauge(
    "courtside_last_success_timestamp",
    "Unix time of the last successful snapshot write",
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if labels:
            histogram.labels(**labels).observe(elapsed)
        else:
            histogram.observe(elapsed)


def start_metrics_server(settings: Settings | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = settings or get_settings()
    if not settings.metrics_enabled:
        return
    try:
        start_http_server(settings.metrics_port)
        logger.info("metrics_server_started", port=settings.metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=settings.metrics_port)
