"""
HTTP transport: one Request in, one real network call, one Response out.

Uses a persistent httpx.AsyncClient for connection pooling. The transport
knows nothing about retries or quotas; it only reports what happened.
"""

import json
import time
from typing import Any, Mapping, Optional

import httpx
import structlog

from hubspot_client.client.classifier import extract_rate_limit_info, parse_hubspot_error
from hubspot_client.client.middleware import Outcome
from hubspot_client.exceptions import (
    HubSpotClientError,
    RequestTimeoutError,
    TransportError,
)
from hubspot_client.models.request import Request
from hubspot_client.models.response import Response
from hubspot_client.monitoring.metrics import (
    request_latency_seconds,
    requests_total,
    status_class,
)

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"
HEADER_ATTEMPT = "X-Request-Attempt"
JSON_CONTENT_TYPE = "application/json"


def marshal_request_body(body: Any) -> bytes:
    """
    Serialize a request body.

    bytes pass through unchanged, str is UTF-8 encoded, anything else is
    JSON-encoded.

    Raises:
        TransportError: The body cannot be JSON-encoded
    """
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    try:
        return json.dumps(body).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise TransportError(
            f"Failed to marshal request body: {exc}",
            details={"body_type": type(body).__name__},
        ) from exc


def build_url(base_url: str, path: str, query_params: Mapping[str, str]) -> httpx.URL:
    """Join base URL and path and percent-encode the query parameters."""
    url = httpx.URL(base_url + path)
    if query_params:
        url = url.copy_merge_params(dict(query_params))
    return url


class HttpTransport:
    """
    Innermost pipeline handler.

    Attributes:
        base_url: API root (e.g. https://api.hubapi.com)
        timeout: Per round trip timeout in seconds
        user_agent: Value of the User-Agent header
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        user_agent: str = "hubspot-client-python",
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics_enabled: bool = True,
        logger: Any = None,
    ):
        """
        Args:
            base_url: API root URL
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            connection_limits: httpx pool limits (default: 20 max connections)
            transport: Custom httpx transport (httpx.MockTransport in tests)
            metrics_enabled: Record Prometheus metrics
            logger: structlog logger to emit events through
        """
        self.logger = logger if logger is not None else structlog.get_logger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.metrics_enabled = metrics_enabled

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
                keepalive_expiry=30.0,
            )
        self._connection_limits = connection_limits
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
            )
            self.logger.debug("Created new httpx AsyncClient", base_url=self.base_url)
        return self._client

    def _prepare(self, request: Request) -> tuple[httpx.URL, bytes | None, httpx.Headers]:
        url = build_url(self.base_url, request.path, request.query_params)

        content: bytes | None = None
        if request.body is not None:
            content = marshal_request_body(request.body)
            request.set_header(HEADER_CONTENT_TYPE, JSON_CONTENT_TYPE)

        headers = httpx.Headers(request.headers)
        headers[HEADER_USER_AGENT] = self.user_agent
        headers[HEADER_ATTEMPT] = str(request.attempt)
        return url, content, headers

    def _record(self, method: str, status: int | None, started: float) -> None:
        if not self.metrics_enabled:
            return
        requests_total.labels(method=method, status_class=status_class(status)).inc()
        request_latency_seconds.labels(method=method).observe(time.perf_counter() - started)

    async def __call__(self, request: Request) -> Outcome:
        method = request.method.value
        started = time.perf_counter()

        try:
            url, content, headers = self._prepare(request)
        except TransportError as exc:
            self.logger.error("Request preparation failed", method=method, path=request.path, error=str(exc))
            return None, exc

        self.logger.debug(
            "Sending HubSpot request",
            method=method,
            url=str(url),
            attempt=request.attempt,
            resource_type=request.resource_type,
            header_names=sorted(headers.keys()),
        )

        client = await self._get_client()
        try:
            http_response = await request.context.run(
                client.request(method, url, content=content, headers=headers)
            )
        except HubSpotClientError as exc:
            self._record(method, None, started)
            self.logger.warning("HubSpot request aborted", method=method, path=request.path, error=str(exc))
            return None, exc
        except httpx.TimeoutException as exc:
            self._record(method, None, started)
            self.logger.warning("HubSpot request timeout", method=method, path=request.path, timeout=self.timeout)
            error = RequestTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "error_type": type(exc).__name__},
            )
            error.__cause__ = exc
            return None, error
        except httpx.HTTPError as exc:
            self._record(method, None, started)
            self.logger.warning(
                "HubSpot network error",
                method=method,
                path=request.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            error = TransportError(
                f"HTTP request failed: {exc}",
                details={"error_type": type(exc).__name__},
            )
            error.__cause__ = exc
            return None, error

        body = http_response.content
        response = Response(
            status_code=http_response.status_code,
            body=body,
            headers=http_response.headers,
            rate_limit=extract_rate_limit_info(http_response.headers),
        )
        self._record(method, response.status_code, started)

        self.logger.info(
            "HubSpot response received",
            method=method,
            path=request.path,
            status=response.status_code,
            attempt=request.attempt,
            latency_ms=int((time.perf_counter() - started) * 1000),
            rate_limit_remaining=response.rate_limit.remaining,
            daily_remaining=response.rate_limit.daily_remaining,
        )

        if response.status_code >= 400:
            error = parse_hubspot_error(response.status_code, body, http_response.headers)
            error.response = response
            response.error = error
            return response, error

        return response, None

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self.logger.debug("Closed HubSpot HTTP client")
