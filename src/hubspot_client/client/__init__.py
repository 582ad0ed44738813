"""
Request pipeline and its stages.

Components:
- HubSpotClient: facade owning settings, rate limiter and transport
- RequestPipeline: ordered stages composed over the transport
- AuthStage / RateLimitStage / RetryPolicy: pipeline stages
- RateLimiter / TokenBucket: dual-quota admission control
- HttpTransport: httpx-based round trip producing a Response
- classifier: error classification and rate-limit header parsing
"""

from hubspot_client.client.api_client import HubSpotClient
from hubspot_client.client.classifier import (
    extract_rate_limit_info,
    is_retryable_status,
    parse_hubspot_error,
    parse_retry_after,
)
from hubspot_client.client.middleware import AuthStage, Handler, Outcome, RateLimitStage, Stage
from hubspot_client.client.pipeline import RequestPipeline
from hubspot_client.client.rate_limiter import RateLimiter, TokenBucket
from hubspot_client.client.retry import RetryPolicy, calculate_backoff
from hubspot_client.client.transport import HttpTransport

__all__ = [
    "HubSpotClient",
    "RequestPipeline",
    "Stage",
    "Handler",
    "Outcome",
    "AuthStage",
    "RateLimitStage",
    "RetryPolicy",
    "calculate_backoff",
    "RateLimiter",
    "TokenBucket",
    "HttpTransport",
    "extract_rate_limit_info",
    "is_retryable_status",
    "parse_hubspot_error",
    "parse_retry_after",
]
