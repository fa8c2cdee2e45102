from __future__ import annotations

"""Prometheus metrics for the builder.

Records HTTP request latency per method/path/status and the outcome and
duration of contract builds.
"""

import time
from typing import Callable, Awaitable

from prometheus_client import Counter, Histogram
from starlette.requests import Request
from starlette.responses import Response

# Histogram buckets chosen for web latencies (seconds)
REQUEST_LATENCY = Histogram(
    "multisig_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path", "status"),
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

BUILDS_TOTAL = Counter(
    "multisig_builds_total",
    "Contract builds by outcome",
    labelnames=("outcome",),
)

# Release builds of a fresh project routinely take minutes
BUILD_DURATION = Histogram(
    "multisig_build_duration_seconds",
    "Wall-clock duration of contract builds in seconds",
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)


def observe_build(returncode: int, elapsed: float) -> None:
    BUILDS_TOTAL.labels(outcome="succeeded" if returncode == 0 else "failed").inc()
    BUILD_DURATION.observe(elapsed)


def sanitize_path(path: str) -> str:
    """Reduce paths to their top-level segment to keep label cardinality low."""
    if not path:
        return "/"
    segs = path.split("?")[0].split("/")
    if len(segs) > 1:
        return "/" + segs[1]
    return path


def metrics_middleware_factory() -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    async def middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        # Avoid observing the metrics endpoint itself
        if request.url.path.startswith("/metrics"):
            return await call_next(request)
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        REQUEST_LATENCY.labels(
            method=request.method,
            path=sanitize_path(request.url.path),
            status=str(response.status_code),
        ).observe(elapsed)
        return response

    return middleware
