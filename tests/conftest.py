"""Shared test fixtures and configuration for all tests.

HTTP traffic is simulated with httpx.MockTransport; no test touches the
network.
"""

import json
from typing import Any, Callable

import httpx
import pytest

from hubspot_client.client.api_client import HubSpotClient
from hubspot_client.config import Settings


class ScriptedTransport:
    """httpx.MockTransport that replays a script of canned outcomes.

    Each script entry is either an exception instance (raised from the
    transport) or a ``(status, payload, headers)`` tuple. The last entry
    repeats once the script is exhausted. Every outgoing httpx.Request is
    recorded in ``requests``.
    """

    def __init__(self, *script: Any):
        self.script = list(script) or [(200, {}, {})]
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(entry, Exception):
            raise entry
        status, payload, headers = entry
        if isinstance(payload, bytes):
            return httpx.Response(status, content=payload, headers=headers)
        return httpx.Response(status, content=json.dumps(payload).encode(), headers=headers)


def build_error_body(
    message: str = "",
    error_type: str = "",
    category: str = "",
    policy_name: str = "",
    correlation_id: str = "",
    status: str = "error",
) -> dict[str, Any]:
    """HubSpot error envelope as returned in 4xx/5xx bodies."""
    body = {"status": status, "message": message}
    if error_type:
        body["errorType"] = error_type
    if category:
        body["category"] = category
    if policy_name:
        body["policyName"] = policy_name
    if correlation_id:
        body["correlationId"] = correlation_id
    return body


@pytest.fixture
def error_body() -> Callable[..., dict[str, Any]]:
    """Factory for HubSpot error envelopes."""
    return build_error_body


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Backoffs are tiny so retry tests finish quickly; metrics and logging
    are off unless a test turns them on.
    """
    return Settings(
        # === Connection ===
        ACCESS_TOKEN="pat-test-token",
        BASE_URL="https://api.hubapi.test",
        TIMEOUT=5.0,
        USER_AGENT="hubspot-client-tests/0.1.0",
        # === Rate Limiting ===
        RATE_LIMIT_ENABLED=True,
        RATE_LIMIT_MAX_BURST=100,
        RATE_LIMIT_DAILY_LIMIT=250000,
        # === Retry ===
        RETRY_ENABLED=True,
        RETRY_MAX_ATTEMPTS=3,
        RETRY_INITIAL_BACKOFF=0.001,
        RETRY_MAX_BACKOFF=0.01,
        # === Logging / Monitoring ===
        LOGGING_ENABLED=False,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        METRICS_ENABLED=False,
    )


@pytest.fixture
def scripted() -> Callable[..., ScriptedTransport]:
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def make_client(test_settings: Settings) -> Callable[..., HubSpotClient]:
    """Build a HubSpotClient over a ScriptedTransport.

    Usage:
        client = make_client(script, RETRY_MAX_ATTEMPTS=1)
    """

    def _make(script: ScriptedTransport, logger: Any = None, **overrides: Any) -> HubSpotClient:
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        return HubSpotClient(settings, logger=logger, http_transport=script.transport)

    return _make
