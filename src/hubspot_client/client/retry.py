"""
Retry with exponential backoff and jitter.

Only classified HTTP outcomes (HubSpotError) are retried, and only when
classification marked them retryable. Transport failures, cancellations
and local rate-limit rejections return immediately.

Backoff per attempt (0-based):
    1. Server wait hint (Retry-After) > 0 -> use it verbatim, no jitter
    2. Otherwise initial_backoff * 2**attempt, +/-10% uniform jitter,
       capped at max_backoff
"""

import random
from datetime import timedelta
from typing import Any

import structlog

from hubspot_client.client.middleware import Handler, Outcome
from hubspot_client.config import RetryConfig
from hubspot_client.exceptions import HubSpotError, RequestCancelledError
from hubspot_client.models.request import Request
from hubspot_client.monitoring.metrics import retries_total

JITTER_FRACTION = 0.10


def calculate_backoff(
    attempt: int,
    retry_after: timedelta | float,
    config: RetryConfig,
    rng: random.Random | None = None,
) -> float:
    """
    Seconds to wait before the attempt after ``attempt``.

    Args:
        attempt: 0-based index of the attempt that just failed
        retry_after: Server wait hint (timedelta or seconds)
        config: Retry settings (initial/max backoff in seconds)
        rng: Random source for jitter (module random by default)
    """
    hint = retry_after.total_seconds() if isinstance(retry_after, timedelta) else float(retry_after)
    if hint > 0:
        return hint

    backoff = config.initial_backoff * (2 ** attempt)
    if backoff <= 0:
        return 0.0

    source = rng or random
    backoff *= source.uniform(1.0 - JITTER_FRACTION, 1.0 + JITTER_FRACTION)
    return min(backoff, config.max_backoff)


class RetryPolicy:
    """
    Retry stage of the request pipeline.

    Attempts run strictly one after another. The attempt index is written
    onto the Request before each attempt so downstream layers can tag it.
    """

    name = "retry"

    def __init__(
        self,
        config: RetryConfig,
        rng: random.Random | None = None,
        metrics_enabled: bool = True,
        logger: Any = None,
    ):
        self.config = config
        self.logger = logger if logger is not None else structlog.get_logger(__name__)
        self._rng = rng
        self.metrics_enabled = metrics_enabled

    def backoff_for(self, attempt: int, error: HubSpotError) -> float:
        return calculate_backoff(attempt, error.retry_after, self.config, self._rng)

    def wrap(self, next_handler: Handler) -> Handler:
        if not self.config.enabled:
            return next_handler

        max_attempts = self.config.max_attempts

        async def handler(request: Request) -> Outcome:
            last: Outcome = (None, None)

            for attempt in range(max_attempts):
                request.record_attempt(attempt)
                response, error = await next_handler(request)

                if error is None:
                    if attempt > 0:
                        self.logger.info(
                            "Request succeeded after retry",
                            method=request.method.value,
                            path=request.path,
                            attempt=attempt,
                        )
                    return response, None

                # Rejected before the round trip: keep the previous attempt's telemetry
                if response is None:
                    response = last[0]
                last = (response, error)

                if not isinstance(error, HubSpotError) or not error.retryable:
                    return response, error

                if attempt >= max_attempts - 1:
                    break

                backoff = self.backoff_for(attempt, error)
                self.logger.warning(
                    "Retryable HubSpot error, backing off",
                    method=request.method.value,
                    path=request.path,
                    resource_type=request.resource_type,
                    status=error.status,
                    policy_name=error.policy_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    backoff_seconds=round(backoff, 3),
                    source="server" if error.retry_after.total_seconds() > 0 else "computed",
                )
                if self.metrics_enabled:
                    retries_total.labels(status=str(error.status)).inc()

                try:
                    await request.context.sleep(backoff)
                except RequestCancelledError as exc:
                    self.logger.info(
                        "Retry backoff interrupted",
                        method=request.method.value,
                        path=request.path,
                        attempt=attempt,
                        error=str(exc),
                    )
                    return response, exc

            self.logger.error(
                "Retry attempts exhausted",
                method=request.method.value,
                path=request.path,
                max_attempts=max_attempts,
                status=getattr(last[1], "status", None),
            )
            return last

        return handler

    def wrap_attempt(self, next_handler: Handler) -> Handler:
        return next_handler
