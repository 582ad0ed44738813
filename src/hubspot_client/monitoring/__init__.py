"""Monitoring and metrics instrumentation for the HubSpot client core.

Exports Prometheus metrics for operational monitoring and alerting.
"""

from hubspot_client.monitoring.metrics import (
    daily_limit_rejections_total,
    rate_limit_wait_seconds,
    request_latency_seconds,
    requests_total,
    retries_total,
    status_class,
)

__all__ = [
    "requests_total",
    "request_latency_seconds",
    "retries_total",
    "rate_limit_wait_seconds",
    "daily_limit_rejections_total",
    "status_class",
]
