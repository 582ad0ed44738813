"""Integration test fixtures.

Integration tests run the real client stack (settings, limiter, stages,
httpx client) against an in-process HubSpot stand-in served through
httpx.MockTransport, so they need no external services.
"""

import asyncio
import json

import httpx
import pytest


class FakeHubSpot:
    """Minimal in-process HubSpot API.

    Tracks its own daily quota and reports it through the rate-limit
    headers, optionally failing the first N calls to a path.
    """

    def __init__(self, daily_limit: int = 1000, latency: float = 0.0):
        self.daily_limit = daily_limit
        self.daily_remaining = daily_limit
        self.latency = latency
        self.failures: dict[str, list[tuple[int, dict]]] = {}
        self.requests: list[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def fail(self, path: str, *outcomes: tuple[int, dict]) -> None:
        self.failures.setdefault(path, []).extend(outcomes)

    def _headers(self) -> dict[str, str]:
        return {
            "X-HubSpot-RateLimit-Max": "100",
            "X-HubSpot-RateLimit-Remaining": "99",
            "X-HubSpot-RateLimit-Interval-Milliseconds": "10000",
            "X-HubSpot-RateLimit-Daily": str(self.daily_limit),
            "X-HubSpot-RateLimit-Daily-Remaining": str(self.daily_remaining),
        }

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            self.daily_remaining -= 1

            pending = self.failures.get(request.url.path)
            if pending:
                status, body = pending.pop(0)
                return httpx.Response(status, content=json.dumps(body).encode(), headers=self._headers())

            if request.method == "POST":
                payload = json.loads(request.content)
                body = {"id": str(len(self.requests)), **payload}
                return httpx.Response(201, content=json.dumps(body).encode(), headers=self._headers())
            return httpx.Response(
                200,
                content=json.dumps({"results": [{"id": "1"}], "path": request.url.path}).encode(),
                headers=self._headers(),
            )
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_hubspot() -> FakeHubSpot:
    return FakeHubSpot()


@pytest.fixture
def fake_hubspot_factory():
    """Factory for FakeHubSpot instances with custom quota or latency."""
    return FakeHubSpot
