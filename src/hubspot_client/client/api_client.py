"""
HubSpot API client facade.

Owns the per-client resources (settings, rate limiter, HTTP transport)
and exposes the single entry point resource clients call:

    >>> async with HubSpotClient.from_settings(ACCESS_TOKEN="pat-...") as client:
    ...     request = Request(HttpMethod.GET, "/crm/v3/objects/contacts")
    ...     response = await client.do(request, CallContext(timeout=10))
"""

import random
import sys
from typing import IO, Any, Mapping, Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from hubspot_client.client.middleware import AuthStage, Outcome, RateLimitStage
from hubspot_client.client.pipeline import RequestPipeline
from hubspot_client.client.rate_limiter import RateLimiter
from hubspot_client.client.retry import RetryPolicy
from hubspot_client.client.transport import HttpTransport
from hubspot_client.config import Settings, settings as default_settings
from hubspot_client.exceptions import ConfigurationError
from hubspot_client.logging_config import null_logger
from hubspot_client.models.context import CallContext
from hubspot_client.models.enums import HttpMethod
from hubspot_client.models.request import Request
from hubspot_client.models.response import RateLimitStatus, Response


class HubSpotClient:
    """
    Resilient HubSpot API client core.

    Every call runs through auth -> rate_limit -> retry -> transport.
    Separate instances (e.g. one per HubSpot account) share nothing.

    Attributes:
        settings: Validated client settings
        rate_limiter: This client's admission gate
        pipeline: Ordered request pipeline
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        logger: Any = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Client settings (default: the environment-loaded settings)
            logger: structlog logger used as the log sink (default: module logger,
                or a no-op logger when LOGGING_ENABLED is false)
            rate_limiter: Pre-built limiter (default: built from settings)
            http_transport: Custom httpx transport (tests use httpx.MockTransport)
            rng: Random source for backoff jitter
        """
        if settings is None:
            settings = default_settings
        self.settings = settings

        if logger is None:
            logger = (
                structlog.get_logger(__name__)
                if settings.LOGGING_ENABLED
                else null_logger()
            )
        self.logger = logger

        metrics_enabled = settings.METRICS_ENABLED
        rate_limit_config = settings.rate_limit

        self.rate_limiter = rate_limiter or RateLimiter(
            max_burst=rate_limit_config.max_burst,
            daily_limit=rate_limit_config.daily_limit,
            logger=logger,
        )
        self.transport = HttpTransport(
            base_url=settings.BASE_URL,
            timeout=settings.TIMEOUT,
            user_agent=settings.USER_AGENT,
            transport=http_transport,
            metrics_enabled=metrics_enabled,
            logger=logger,
        )
        self.pipeline = RequestPipeline(
            stages=[
                AuthStage(settings.ACCESS_TOKEN),
                RateLimitStage(
                    self.rate_limiter,
                    enabled=rate_limit_config.enabled,
                    metrics_enabled=metrics_enabled,
                    logger=logger,
                ),
                RetryPolicy(settings.retry, rng=rng, metrics_enabled=metrics_enabled, logger=logger),
            ],
            terminal=self.transport,
        )

        self.logger.info(
            "HubSpot client initialized",
            base_url=settings.BASE_URL,
            timeout=settings.TIMEOUT,
            rate_limit_enabled=rate_limit_config.enabled,
            max_burst=rate_limit_config.max_burst,
            retry_enabled=settings.RETRY_ENABLED,
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            authenticated=bool(settings.ACCESS_TOKEN),
        )

    @classmethod
    def from_settings(cls, **overrides: Any) -> "HubSpotClient":
        """
        Build a client from environment settings plus explicit overrides.

        Raises:
            ConfigurationError: The resulting settings are invalid
        """
        try:
            settings = Settings(**overrides)
        except PydanticValidationError as exc:
            raise ConfigurationError(
                f"Invalid HubSpot client settings: {exc.error_count()} error(s)",
                details={"errors": [err["msg"] for err in exc.errors()]},
            ) from exc
        return cls(settings)

    async def do_raw(
        self, request: Request, context: Optional[CallContext] = None
    ) -> Outcome:
        """
        Execute a request and return ``(response, error)`` without raising.

        ``response`` is the most recent Response (None if no round trip
        completed); ``error`` is None exactly on success.
        """
        if context is not None:
            request.with_context(context)
        response, error = await self.pipeline.execute(request)
        if error is not None and error.response is None:
            error.response = response
        return response, error

    async def do(self, request: Request, context: Optional[CallContext] = None) -> Response:
        """
        Execute a request through the pipeline.

        Returns:
            The 2xx Response

        Raises:
            HubSpotError: 4xx/5xx response (or local daily-limit rejection)
            TransportError: Network failure, cancellation or timeout
        """
        response, error = await self.do_raw(request, context)
        if error is not None:
            raise error
        return response

    async def request(
        self,
        method: HttpMethod | str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        resource_type: str = "",
        context: Optional[CallContext] = None,
    ) -> Response:
        """Build a Request from keyword arguments and execute it."""
        request = Request(method, path).with_resource_type(resource_type)
        for key, value in (params or {}).items():
            request.add_query_param(key, value)
        for key, value in (headers or {}).items():
            request.add_header(key, value)
        if body is not None:
            request.with_body(body)
        return await self.do(request, context)

    async def get(self, path: str, **kwargs: Any) -> Response:
        return await self.request(HttpMethod.GET, path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Response:
        return await self.request(HttpMethod.POST, path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Response:
        return await self.request(HttpMethod.PATCH, path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        return await self.request(HttpMethod.PUT, path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Response:
        return await self.request(HttpMethod.DELETE, path, **kwargs)

    def rate_limit_status(self) -> RateLimitStatus:
        return self.rate_limiter.snapshot()

    def print_rate_limit(self, *writers: IO[str]) -> None:
        """Write the daily quota report to each writer (stdout by default)."""
        report = self.rate_limit_status().render()
        for writer in writers or (sys.stdout,):
            try:
                writer.write(report)
            except (OSError, ValueError) as exc:
                self.logger.warning("Failed to write rate limit report", error=str(exc))

    async def close(self) -> None:
        """Close pooled HTTP connections."""
        await self.transport.close()

    async def __aenter__(self) -> "HubSpotClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"HubSpotClient(base_url={self.settings.BASE_URL}, stages={self.pipeline.stage_names})"
