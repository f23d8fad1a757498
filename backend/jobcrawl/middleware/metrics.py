"""
Prometheus metrics for the crawler API.

Two families live here:
- HTTP metrics recorded by PrometheusMiddleware for every API request
- Crawl and alert metrics recorded by the services through the
  record_* helpers at the bottom of this module

All series share the "jobcrawl" namespace and are scraped from GET /metrics.
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

NAMESPACE = "jobcrawl"
METRICS_PATH = "/metrics"

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "API request latency",
    ["method", "route", "status"],
    namespace=NAMESPACE,
    buckets=[0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 120.0, 600.0],
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "API requests served",
    ["method", "route", "status"],
    namespace=NAMESPACE,
)

REQUESTS_IN_FLIGHT = Gauge(
    "http_requests_in_flight",
    "API requests currently being served",
    ["route"],
    namespace=NAMESPACE,
)

CRAWL_DURATION = Histogram(
    "crawl_duration_seconds",
    "Wall time of one crawl, browser launch to dedup gate",
    ["source"],
    namespace=NAMESPACE,
    buckets=[5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

CRAWL_JOBS = Counter(
    "crawl_jobs_total",
    "Extracted jobs by dedup outcome (inserted, duplicate, failed)",
    ["source", "outcome"],
    namespace=NAMESPACE,
)

CRAWL_FAILURES = Counter(
    "crawl_failures_total",
    "Crawls aborted by a navigation timeout or browser error",
    ["source"],
    namespace=NAMESPACE,
)

ALERTS = Counter(
    "alerts_total",
    "Alert requests by outcome (sent, empty, failed)",
    ["outcome"],
    namespace=NAMESPACE,
)


def route_template(request: Request) -> str:
    """Path template of the matching route, so labels stay bounded."""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Times every API request except the scrape endpoint itself."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        route = route_template(request)
        if route == METRICS_PATH:
            return await call_next(request)

        status = "500"
        REQUESTS_IN_FLIGHT.labels(route=route).inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            elapsed = time.perf_counter() - start
            REQUEST_LATENCY.labels(method=request.method, route=route, status=status).observe(elapsed)
            REQUEST_COUNT.labels(method=request.method, route=route, status=status).inc()
            REQUESTS_IN_FLIGHT.labels(route=route).dec()


def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_metrics(app: FastAPI) -> None:
    """Install the request middleware and expose GET /metrics."""
    app.add_middleware(PrometheusMiddleware)
    app.add_route(METRICS_PATH, metrics_endpoint, methods=["GET"])
    logger.info("Prometheus metrics configured")


def record_crawl(source: str, duration: float, inserted: int, duplicates: int, failed: int) -> None:
    CRAWL_DURATION.labels(source=source).observe(duration)
    for outcome, count in (("inserted", inserted), ("duplicate", duplicates), ("failed", failed)):
        CRAWL_JOBS.labels(source=source, outcome=outcome).inc(count)


def record_crawl_failure(source: str) -> None:
    CRAWL_FAILURES.labels(source=source).inc()


def record_alert(outcome: str) -> None:
    ALERTS.labels(outcome=outcome).inc()
