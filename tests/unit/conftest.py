"""Unit test fixtures (fake clocks and stub handlers).

Lets rate-limiter and retry tests control time instead of sleeping.
"""

from datetime import datetime, timedelta, timezone

import pytest

from hubspot_client.config import RetryConfig
from hubspot_client.models.response import Response


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeWallClock:
    """Manually advanced UTC wall clock."""

    def __init__(self, start: datetime | None = None):
        self.value = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.value

    def advance(self, delta: timedelta) -> None:
        self.value += delta


class StubHandler:
    """Inner handler returning scripted outcomes and counting invocations."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.attempts: list[int] = []

    async def __call__(self, request):
        self.calls += 1
        self.attempts.append(request.attempt)
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_now() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def fast_retry_config() -> RetryConfig:
    """Three attempts with no backoff delay."""
    return RetryConfig(enabled=True, max_attempts=3, initial_backoff=0.0, max_backoff=0.0)


@pytest.fixture
def ok_response() -> Response:
    return Response(status_code=200, body=b'{"id": "1"}')


@pytest.fixture
def stub_handler():
    """Factory for StubHandler instances."""
    return StubHandler
