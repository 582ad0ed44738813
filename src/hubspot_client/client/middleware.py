"""
Pipeline stages.

A stage contributes at two levels of the execution path:

- ``wrap(next)``: runs once per call (per-call layer)
- ``wrap_attempt(next)``: runs once per attempt, directly around the
  transport (per-attempt layer, inside the retry loop)

RequestPipeline applies all per-attempt layers first and then all
per-call layers, both in the fixed stage order. With the stages
auth -> rate_limit -> retry this yields:

    auth.wrap(rate_limit.wrap(retry.wrap(rate_limit.wrap_attempt(transport))))

so credentials are attached before anything is counted, an exhausted
daily quota fails fast before the retry loop, and every attempt (not
only the first) is admission-controlled.

Handlers return ``(response, error)`` pairs instead of raising so the
retry layer can inspect outcomes uniformly.
"""

from typing import Any, Awaitable, Callable, Protocol

import structlog

from hubspot_client.client.rate_limiter import RateLimiter
from hubspot_client.exceptions import DailyLimitExceededError, HubSpotClientError
from hubspot_client.models.request import Request
from hubspot_client.models.response import Response
from hubspot_client.monitoring.metrics import (
    daily_limit_rejections_total,
    rate_limit_wait_seconds,
)

Outcome = tuple[Response | None, HubSpotClientError | None]
Handler = Callable[[Request], Awaitable[Outcome]]


class Stage(Protocol):
    """One named concern of the request pipeline."""

    name: str

    def wrap(self, next_handler: Handler) -> Handler:
        """Per-call layer."""
        ...

    def wrap_attempt(self, next_handler: Handler) -> Handler:
        """Per-attempt layer."""
        ...


class AuthStage:
    """Attach ``Authorization: Bearer <token>`` when a token is configured."""

    name = "auth"

    def __init__(self, access_token: str):
        self._access_token = access_token

    def wrap(self, next_handler: Handler) -> Handler:
        async def handler(request: Request) -> Outcome:
            if self._access_token:
                request.set_header("Authorization", f"Bearer {self._access_token}")
            return await next_handler(request)

        return handler

    def wrap_attempt(self, next_handler: Handler) -> Handler:
        return next_handler


class RateLimitStage:
    """
    Admission control against the shared RateLimiter.

    Per call: fail fast with DailyLimitExceededError when the local daily
    quota is already spent (no attempt, no transport call).
    Per attempt: wait for an interval token, charge the daily quota, run
    the transport, then sync the daily counters from the server's response.
    """

    name = "rate_limit"

    def __init__(
        self,
        rate_limiter: RateLimiter,
        enabled: bool = True,
        metrics_enabled: bool = True,
        logger: Any = None,
    ):
        self.rate_limiter = rate_limiter
        self.logger = logger if logger is not None else structlog.get_logger(__name__)
        self.enabled = enabled
        self.metrics_enabled = metrics_enabled

    def _reject(self, request: Request) -> Outcome:
        error = DailyLimitExceededError(daily_limit=self.rate_limiter.daily_limit)
        self.logger.warning(
            "Daily API limit exceeded, rejecting request",
            method=request.method.value,
            path=request.path,
            resource_type=request.resource_type,
            attempt=request.attempt,
        )
        if self.metrics_enabled:
            daily_limit_rejections_total.inc()
        return None, error

    def wrap(self, next_handler: Handler) -> Handler:
        if not self.enabled:
            return next_handler

        async def handler(request: Request) -> Outcome:
            if not self.rate_limiter.check_daily_limit():
                return self._reject(request)
            return await next_handler(request)

        return handler

    def wrap_attempt(self, next_handler: Handler) -> Handler:
        if not self.enabled:
            return next_handler

        async def handler(request: Request) -> Outcome:
            try:
                waited = await self.rate_limiter.wait(request.context)
            except HubSpotClientError as exc:
                self.logger.info(
                    "Rate limit wait aborted",
                    method=request.method.value,
                    path=request.path,
                    error=str(exc),
                )
                return None, exc
            if waited and self.metrics_enabled:
                rate_limit_wait_seconds.observe(waited)

            # Daily quota is only charged once the attempt is actually going out
            if not self.rate_limiter.try_consume_daily():
                return self._reject(request)

            response, error = await next_handler(request)

            if response is not None:
                self.rate_limiter.update_from_response(response)
            return response, error

        return handler
