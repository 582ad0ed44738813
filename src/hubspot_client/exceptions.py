"""
Exceptions for the HubSpot client core.

The taxonomy mirrors how a failed call can end:

- DailyLimitExceededError: pre-flight rejection, the local daily quota is
  exhausted and the call never reached the network (never retryable)
- HubSpotError: classified 4xx/5xx response, carrying the retryable flag
  and the server wait hint
- TransportError (and RequestCancelledError / RequestTimeoutError): the
  call failed before a status line was read; never retried by the core

Callers switch on the concrete type to decide domain-level handling
(e.g. map a 404 HubSpotError to "not found").
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hubspot_client.models.response import Response


class HubSpotClientError(Exception):
    """
    Base exception for all client errors.

    Every error carries the most recent Response (None when no HTTP round
    trip completed) so rate-limit telemetry stays inspectable on failure.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.response: "Response | None" = None


class HubSpotError(HubSpotClientError):
    """
    Structured error parsed from a failed HubSpot response.

    ``retryable`` is computed once from (status, policy_name) at
    classification time and never recomputed.

    Attributes:
        status: HTTP status code
        message: Human message from the error envelope ("" if absent)
        error_type: errorType tag (e.g. "RATE_LIMIT", "VALIDATION_ERROR")
        category: category tag
        policy_name: Quota tier that rejected the call ("DAILY", "TEN_SECONDLY_ROLLING")
        correlation_id: HubSpot correlation id for support requests
        retryable: Whether the retry layer may try again
        retry_after: Server wait hint (zero when none was given)
        raw_body: Undecoded response body for diagnostics
    """

    def __init__(
        self,
        status: int,
        message: str = "",
        error_type: str = "",
        category: str = "",
        policy_name: str = "",
        correlation_id: str = "",
        retryable: bool = False,
        retry_after: timedelta = timedelta(0),
        raw_body: str = "",
    ):
        self.status = status
        self.error_type = error_type
        self.category = category
        self.policy_name = policy_name
        self.correlation_id = correlation_id
        self.retryable = retryable
        self.retry_after = retry_after
        self.raw_body = raw_body
        super().__init__(
            message,
            details={
                "status": status,
                "error_type": error_type,
                "category": category,
                "policy_name": policy_name,
                "correlation_id": correlation_id,
            },
        )

    def __str__(self) -> str:
        if self.message:
            return (
                f"HubSpot API error: {self.message} "
                f"(type: {self.error_type}, status: {self.status})"
            )
        return f"HubSpot API error: status {self.status}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(status={self.status}, "
            f"error_type={self.error_type!r}, policy_name={self.policy_name!r}, "
            f"retryable={self.retryable})"
        )


class DailyLimitExceededError(HubSpotError):
    """
    Raised before sending when the local daily quota is exhausted.

    Synthetic 429 tagged with the DAILY policy; the request never reaches
    the network and is never retried.
    """

    def __init__(self, daily_limit: int = 0):
        super().__init__(
            status=429,
            message="Daily API limit exceeded",
            error_type="RATE_LIMIT",
            policy_name="DAILY",
            retryable=False,
        )
        self.details["daily_limit"] = daily_limit


class TransportError(HubSpotClientError):
    """
    Raised when no HTTP status was received.

    Includes DNS/connection failures, body serialisation failures and
    read errors. Surfaced immediately: it is ambiguous whether the server
    saw the request, so the retry layer never replays it.
    """


class RequestCancelledError(TransportError):
    """Raised when the call's CallContext was cancelled."""


class RequestTimeoutError(RequestCancelledError):
    """Raised when the call's deadline (or the HTTP timeout) elapsed."""


class ConfigurationError(HubSpotClientError):
    """Raised when client settings fail validation."""


class RequestFrozenError(HubSpotClientError):
    """Raised when a caller mutates a Request after its first attempt started."""


class RequiredFieldsError(HubSpotClientError):
    """
    Raised when a decoded payload is missing required fields.

    Attributes:
        missing: One message per missing field, in schema order
    """

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Payload is missing {len(missing)} required field(s)",
            details={"missing": missing},
        )
        self.missing = missing
