"""
Data models for the request/response cycle.

Components:
- CallContext: cancellation/deadline handle for one call
- Request: outbound call description, frozen once the pipeline starts
- Response: raw HTTP result with derived rate-limit telemetry
- RateLimitInfo: per-response rate-limit snapshot from headers
- RateLimitStatus: local view of the limiter's daily quota
"""

from hubspot_client.models.context import CallContext
from hubspot_client.models.enums import HttpMethod, PolicyName
from hubspot_client.models.request import Request
from hubspot_client.models.response import RateLimitInfo, RateLimitStatus, Response

__all__ = [
    "CallContext",
    "HttpMethod",
    "PolicyName",
    "Request",
    "Response",
    "RateLimitInfo",
    "RateLimitStatus",
]
