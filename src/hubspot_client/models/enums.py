"""
Enumerations shared by the request/response model and the error classifier.
"""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods supported by the HubSpot API."""

    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    PUT = "PUT"
    DELETE = "DELETE"


class PolicyName(str, Enum):
    """
    Quota tier that rejected a call (``policyName`` in HubSpot error bodies).

    DAILY rejections are never retried within the same day.
    """

    DAILY = "DAILY"
    TEN_SECONDLY_ROLLING = "TEN_SECONDLY_ROLLING"
    SECONDLY = "SECONDLY"
