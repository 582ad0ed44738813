"""
Resilient request-execution core for the HubSpot API.

Every outbound call passes through a single pipeline that handles:
- Bearer authentication injection
- Rate-limit admission control (10-second burst bucket + daily quota)
- Retry with exponential backoff and jitter on transient failures
- Structured error classification from response metadata

Resource-specific clients (contacts, deals, tickets, ...) build a Request
and hand it to HubSpotClient.do().
"""

__version__ = "0.1.0"

from hubspot_client.client.api_client import HubSpotClient
from hubspot_client.exceptions import (
    ConfigurationError,
    DailyLimitExceededError,
    HubSpotClientError,
    HubSpotError,
    RequestCancelledError,
    RequestFrozenError,
    RequestTimeoutError,
    RequiredFieldsError,
    TransportError,
)
from hubspot_client.config import Settings
from hubspot_client.models.context import CallContext
from hubspot_client.models.enums import HttpMethod, PolicyName
from hubspot_client.models.request import Request
from hubspot_client.models.response import RateLimitInfo, RateLimitStatus, Response

__all__ = [
    "__version__",
    "HubSpotClient",
    "CallContext",
    "Settings",
    "Request",
    "Response",
    "RateLimitInfo",
    "RateLimitStatus",
    "HttpMethod",
    "PolicyName",
    "HubSpotClientError",
    "HubSpotError",
    "DailyLimitExceededError",
    "TransportError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "ConfigurationError",
    "RequestFrozenError",
    "RequiredFieldsError",
]
