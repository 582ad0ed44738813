"""
Error classification and rate-limit telemetry extraction.

Classification depends only on the HTTP status and the policy name in
the error body, never on message text:

    429                 -> retryable unless policyName == "DAILY"
    500, 502, 503, 504  -> retryable
    anything else       -> not retryable
"""

import json
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping

import structlog

from hubspot_client.exceptions import HubSpotError
from hubspot_client.models.enums import PolicyName
from hubspot_client.models.response import DEFAULT_INTERVAL_MS, RateLimitInfo

logger = structlog.get_logger(__name__)

RETRYABLE_SERVER_STATUSES = frozenset({500, 502, 503, 504})

HEADER_RETRY_AFTER = "Retry-After"
HEADER_RATE_LIMIT_MAX = "X-HubSpot-RateLimit-Max"
HEADER_RATE_LIMIT_REMAINING = "X-HubSpot-RateLimit-Remaining"
HEADER_RATE_LIMIT_INTERVAL = "X-HubSpot-RateLimit-Interval-Milliseconds"
HEADER_RATE_LIMIT_DAILY = "X-HubSpot-RateLimit-Daily"
HEADER_RATE_LIMIT_DAILY_REMAINING = "X-HubSpot-RateLimit-Daily-Remaining"


def is_retryable_status(status: int, policy_name: str = "") -> bool:
    """Decide retryability from (status, policy name) alone."""
    if status == 429:
        return policy_name != PolicyName.DAILY.value
    return status in RETRYABLE_SERVER_STATUSES


def parse_retry_after(value: str | None, now: datetime | None = None) -> timedelta:
    """
    Parse a Retry-After header value into a wait duration.

    Integer values are seconds from now; anything else is tried as an
    HTTP-date. Unparseable values and past dates yield zero.
    """
    if not value:
        return timedelta(0)
    value = value.strip()

    try:
        seconds = int(value)
    except ValueError:
        pass
    else:
        try:
            return timedelta(seconds=max(seconds, 0))
        except OverflowError:
            logger.debug("Out-of-range Retry-After header", value=value)
            return timedelta(0)

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable Retry-After header", value=value)
        return timedelta(0)

    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return max(when - current, timedelta(0))


def parse_hubspot_error(
    status: int, body: bytes, headers: Mapping[str, str]
) -> HubSpotError:
    """
    Build a classified HubSpotError from a failed response.

    The body is decoded as HubSpot's error envelope
    ({"status", "message", "errorType", "category", "policyName",
    "correlationId"}); if that fails only status and raw body are kept.
    """
    retry_after = parse_retry_after(headers.get(HEADER_RETRY_AFTER))
    raw_body = body.decode("utf-8", errors="replace")

    envelope: dict = {}
    try:
        decoded = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        decoded = {}
    if isinstance(decoded, dict):
        envelope = decoded

    def _field(name: str) -> str:
        value = envelope.get(name)
        return value if isinstance(value, str) else ""

    policy_name = _field("policyName")

    return HubSpotError(
        status=status,
        message=_field("message"),
        error_type=_field("errorType"),
        category=_field("category"),
        policy_name=policy_name,
        correlation_id=_field("correlationId"),
        retryable=is_retryable_status(status, policy_name),
        retry_after=retry_after,
        raw_body=raw_body,
    )


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Ignoring non-integer rate-limit header", header=name, value=value)
        return None


def extract_rate_limit_info(
    headers: Mapping[str, str], now: datetime | None = None
) -> RateLimitInfo:
    """
    Read HubSpot's rate-limit headers into a RateLimitInfo.

    Missing or malformed headers leave their field at the default.
    """
    current = now or datetime.now(timezone.utc)
    interval_ms = _int_header(headers, HEADER_RATE_LIMIT_INTERVAL)
    if interval_ms is None:
        interval_ms = DEFAULT_INTERVAL_MS
    try:
        window_reset_time = current + timedelta(milliseconds=interval_ms)
    except OverflowError:
        logger.debug("Ignoring out-of-range rate-limit interval", value=interval_ms)
        interval_ms = DEFAULT_INTERVAL_MS
        window_reset_time = current + timedelta(milliseconds=interval_ms)
    daily_limit = _int_header(headers, HEADER_RATE_LIMIT_DAILY)
    daily_remaining = _int_header(headers, HEADER_RATE_LIMIT_DAILY_REMAINING)

    return RateLimitInfo(
        max=_int_header(headers, HEADER_RATE_LIMIT_MAX) or 0,
        remaining=_int_header(headers, HEADER_RATE_LIMIT_REMAINING) or 0,
        interval_ms=interval_ms,
        daily_limit=daily_limit or 0,
        daily_remaining=daily_remaining or 0,
        has_daily_limit=daily_limit is not None,
        has_daily_remaining=daily_remaining is not None,
        window_reset_time=window_reset_time,
        daily_reset_time=current + timedelta(days=1),
    )
