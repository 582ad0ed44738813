"""
Raw HTTP result of one transport round trip.

``Response.error`` is set exactly when ``status_code >= 400``. A call that
failed before any bytes were read has no Response at all; its error is
raised (or returned) out-of-band.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Iterable

import httpx
from pydantic import BaseModel, ConfigDict, Field

from hubspot_client.validation.required import decode_json

if TYPE_CHECKING:
    from hubspot_client.exceptions import HubSpotError

DEFAULT_INTERVAL_MS = 10_000


class RateLimitInfo(BaseModel):
    """
    Rate-limit telemetry extracted from one response's headers.

    Rebuilt for every response and never mutated. Absent headers leave
    their field at 0 (interval defaults to 10 000 ms).
    """

    model_config = ConfigDict(frozen=True)

    max: int = Field(default=0, description="Requests allowed per interval")
    remaining: int = Field(default=0, description="Requests remaining in the interval")
    interval_ms: int = Field(default=DEFAULT_INTERVAL_MS, description="Interval length in ms")
    daily_limit: int = Field(default=0, description="Requests allowed per day")
    daily_remaining: int = Field(default=0, description="Requests remaining today")
    has_daily_limit: bool = Field(
        default=False,
        description="Whether the response carried X-HubSpot-RateLimit-Daily",
    )
    has_daily_remaining: bool = Field(
        default=False,
        description="Whether the response carried X-HubSpot-RateLimit-Daily-Remaining",
    )
    window_reset_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
        + timedelta(milliseconds=DEFAULT_INTERVAL_MS)
    )
    daily_reset_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc) + timedelta(days=1)
    )

    @property
    def has_daily(self) -> bool:
        return self.has_daily_limit or self.has_daily_remaining


class RateLimitStatus(BaseModel):
    """Local view of the limiter's daily quota."""

    model_config = ConfigDict(frozen=True)

    daily_limit: int
    daily_remaining: int
    daily_reset_time: datetime

    def render(self) -> str:
        return (
            f"Daily limit: {self.daily_limit}\n"
            f"Daily remaining: {self.daily_remaining}\n"
            f"Daily reset time: {self.daily_reset_time.isoformat()}\n"
        )


@dataclass
class Response:
    """
    Result of a completed HTTP round trip (any status).

    Attributes:
        status_code: HTTP status
        body: Raw body bytes
        headers: Raw response headers (case-insensitive)
        rate_limit: Telemetry snapshot from the headers
        error: Classified error, present exactly when status_code >= 400
    """

    status_code: int
    body: bytes = b""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)
    error: "HubSpotError | None" = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def is_rate_limited(self) -> bool:
        """True when either quota reported by the server is spent."""
        return self.rate_limit.remaining <= 0 or self.rate_limit.daily_remaining <= 0

    def json(self, required: Iterable[str] = ()) -> Any:
        """
        Decode the body as JSON.

        Args:
            required: Top-level fields that must be present and non-empty

        Raises:
            json.JSONDecodeError: Body is not JSON
            RequiredFieldsError: A required field is missing
        """
        if not self.body:
            raise json.JSONDecodeError("Empty response body", "", 0)
        return decode_json(self.body, required=required)
