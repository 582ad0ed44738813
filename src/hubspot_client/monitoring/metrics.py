"""Prometheus metrics for the HubSpot client core.

Applications expose these through their own /metrics endpoint.
Alert rules worth configuring:
- hubspot_retries_total (sustained retries indicate upstream instability)
- hubspot_daily_limit_rejections_total (any increase means the daily quota is spent)
- hubspot_rate_limit_wait_seconds (long waits mean the burst setting is too low)
"""

from prometheus_client import Counter, Histogram

# === Request Metrics ===

requests_total = Counter(
    "hubspot_requests_total",
    "Completed HubSpot HTTP round trips by method and status class",
    ["method", "status_class"],
)
"""
Round-trip counter.

Labels:
- method: GET, POST, PATCH, PUT, DELETE
- status_class: 2xx, 3xx, 4xx, 5xx, or "error" for transport failures
"""

request_latency_seconds = Histogram(
    "hubspot_request_latency_seconds",
    "HubSpot HTTP round-trip latency in seconds",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# === Retry Metrics ===

retries_total = Counter(
    "hubspot_retries_total",
    "Retries scheduled by the status that triggered them",
    ["status"],
)

# === Rate Limit Metrics ===

rate_limit_wait_seconds = Histogram(
    "hubspot_rate_limit_wait_seconds",
    "Time attempts spent waiting for an interval token",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

daily_limit_rejections_total = Counter(
    "hubspot_daily_limit_rejections_total",
    "Calls rejected locally because the daily quota was exhausted",
)


def status_class(status: int | None) -> str:
    if status is None:
        return "error"
    return f"{status // 100}xx"
