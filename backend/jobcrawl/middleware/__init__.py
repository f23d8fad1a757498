"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus request metrics
- Crawl and alert counters recorded by the services
"""

from jobcrawl.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    record_crawl,
    record_crawl_failure,
    record_alert,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "record_crawl",
    "record_crawl_failure",
    "record_alert",
]
