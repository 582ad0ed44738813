"""
Unit tests for TokenBucket and RateLimiter.

Time is driven by fake clocks wherever possible; the few tests that
really suspend use waits of a few milliseconds.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import httpx
import pytest

from hubspot_client.client.classifier import extract_rate_limit_info
from hubspot_client.client.rate_limiter import RateLimiter, TokenBucket
from hubspot_client.exceptions import RequestCancelledError, RequestTimeoutError
from hubspot_client.models.context import CallContext
from hubspot_client.models.response import RateLimitStatus, Response


def response_with_headers(headers: dict[str, str]) -> Response:
    parsed = httpx.Headers(headers)
    return Response(status_code=200, headers=parsed, rate_limit=extract_rate_limit_info(parsed))


class TestTokenBucket:
    def test_rejects_invalid_parameters(self):
        with pytest.raises(ValueError):
            TokenBucket(rate=0, burst=10)
        with pytest.raises(ValueError):
            TokenBucket(rate=1, burst=0)

    def test_burst_is_available_immediately(self, fake_clock):
        bucket = TokenBucket(rate=10.0, burst=5, clock=fake_clock)

        waits = [bucket.reserve() for _ in range(5)]

        assert waits == [0.0] * 5
        assert bucket.tokens == pytest.approx(0.0)

    def test_reservation_beyond_burst_goes_into_debt(self, fake_clock):
        bucket = TokenBucket(rate=10.0, burst=2, clock=fake_clock)
        bucket.reserve()
        bucket.reserve()

        assert bucket.reserve() == pytest.approx(0.1)
        assert bucket.reserve() == pytest.approx(0.2)

    def test_refill_is_capped_at_burst(self, fake_clock):
        bucket = TokenBucket(rate=10.0, burst=3, clock=fake_clock)
        for _ in range(3):
            bucket.reserve()

        fake_clock.advance(0.1)
        assert bucket.tokens == pytest.approx(1.0)

        fake_clock.advance(60)
        assert bucket.tokens == pytest.approx(3.0)

    def test_release_returns_token(self, fake_clock):
        bucket = TokenBucket(rate=1.0, burst=1, clock=fake_clock)
        bucket.reserve()
        bucket.reserve()
        assert bucket.tokens == pytest.approx(-1.0)

        bucket.release()
        assert bucket.tokens == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_acquire_without_wait(self):
        bucket = TokenBucket(rate=10.0, burst=1)

        assert await bucket.acquire(CallContext.background()) == 0.0

    @pytest.mark.asyncio
    async def test_acquire_waits_for_refill(self):
        bucket = TokenBucket(rate=100.0, burst=1)
        await bucket.acquire(CallContext.background())

        waited = await bucket.acquire(CallContext.background())

        assert 0 < waited <= 0.011

    @pytest.mark.asyncio
    async def test_acquire_fails_fast_when_wait_exceeds_deadline(self, fake_clock):
        bucket = TokenBucket(rate=0.1, burst=1, clock=fake_clock)
        bucket.reserve()

        with pytest.raises(RequestTimeoutError):
            await bucket.acquire(CallContext(timeout=0.5))

        # Abandoned reservation was given back
        assert bucket.tokens == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_acquire_cancelled_while_waiting(self, fake_clock):
        bucket = TokenBucket(rate=0.1, burst=1, clock=fake_clock)
        bucket.reserve()
        context = CallContext()
        asyncio.get_running_loop().call_later(0.01, context.cancel)

        with pytest.raises(RequestCancelledError):
            await bucket.acquire(context)

        assert bucket.tokens == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_acquire_with_cancelled_context_takes_no_token(self, fake_clock):
        bucket = TokenBucket(rate=1.0, burst=1, clock=fake_clock)
        context = CallContext()
        context.cancel()

        with pytest.raises(RequestCancelledError):
            await bucket.acquire(context)

        assert bucket.tokens == pytest.approx(1.0)


class TestRateLimiterInterval:
    def test_bucket_sized_from_ten_second_burst(self):
        limiter = RateLimiter(max_burst=100)

        assert limiter.bucket.burst == 100
        assert limiter.bucket.rate == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_wait_returns_zero_within_burst(self):
        limiter = RateLimiter(max_burst=5)

        waits = [await limiter.wait(CallContext.background()) for _ in range(5)]

        assert waits == [0.0] * 5


class TestRateLimiterDaily:
    def test_seeded_with_default_daily_limit(self):
        limiter = RateLimiter()

        assert limiter.daily_limit == 250000
        assert limiter.daily_remaining == 250000
        assert limiter.check_daily_limit() is True

    def test_reset_time_is_one_day_out(self, fake_now):
        start = fake_now()
        limiter = RateLimiter(now=fake_now)

        assert limiter.daily_reset_time == start + timedelta(days=1)

    def test_check_is_false_when_spent(self):
        limiter = RateLimiter(daily_limit=10)
        limiter.set_daily_remaining(0)

        assert limiter.check_daily_limit() is False

    def test_try_consume_decrements_until_spent(self):
        limiter = RateLimiter(daily_limit=2)

        assert limiter.try_consume_daily() is True
        assert limiter.try_consume_daily() is True
        assert limiter.try_consume_daily() is False
        assert limiter.daily_remaining == 0

    def test_server_feedback_overwrites_local_counters(self):
        limiter = RateLimiter(daily_limit=250000)
        response = response_with_headers(
            {
                "X-HubSpot-RateLimit-Daily": "500000",
                "X-HubSpot-RateLimit-Daily-Remaining": "12",
            }
        )

        limiter.update_from_response(response)

        assert limiter.daily_limit == 500000
        assert limiter.daily_remaining == 12

    def test_feedback_can_raise_remaining(self):
        limiter = RateLimiter(daily_limit=100)
        limiter.set_daily_remaining(0)

        limiter.update_from_response(
            response_with_headers(
                {"X-HubSpot-RateLimit-Daily": "100", "X-HubSpot-RateLimit-Daily-Remaining": "40"}
            )
        )

        assert limiter.check_daily_limit() is True

    def test_response_without_daily_headers_leaves_counters(self):
        limiter = RateLimiter(daily_limit=100)
        limiter.try_consume_daily()

        limiter.update_from_response(
            response_with_headers({"X-HubSpot-RateLimit-Remaining": "9"})
        )

        assert limiter.daily_limit == 100
        assert limiter.daily_remaining == 99

    def test_partial_daily_headers_only_overwrite_present_counter(self, fake_now):
        limiter = RateLimiter(daily_limit=1000, now=fake_now)

        limiter.update_from_response(
            response_with_headers({"X-HubSpot-RateLimit-Daily-Remaining": "500"})
        )

        assert limiter.daily_limit == 1000
        assert limiter.daily_remaining == 500

        limiter.set_daily_remaining(0)
        fake_now.advance(timedelta(days=1, seconds=1))

        # Rollover restores the real limit, not a zero taken from a missing header
        assert limiter.check_daily_limit() is True
        assert limiter.daily_remaining == 1000

    def test_daily_limit_header_alone_keeps_remaining(self):
        limiter = RateLimiter(daily_limit=1000)
        limiter.try_consume_daily()

        limiter.update_from_response(
            response_with_headers({"X-HubSpot-RateLimit-Daily": "500000"})
        )

        assert limiter.daily_limit == 500000
        assert limiter.daily_remaining == 999

    def test_window_rolls_over_after_reset_time(self, fake_now):
        limiter = RateLimiter(daily_limit=3, now=fake_now)
        limiter.set_daily_remaining(0)
        first_reset = limiter.daily_reset_time

        fake_now.advance(timedelta(days=1, seconds=1))

        assert limiter.check_daily_limit() is True
        assert limiter.daily_remaining == 3
        assert limiter.daily_reset_time == first_reset + timedelta(days=1)

    def test_snapshot(self, fake_now):
        limiter = RateLimiter(daily_limit=1000, now=fake_now)
        limiter.try_consume_daily()

        status = limiter.snapshot()

        assert isinstance(status, RateLimitStatus)
        assert status.daily_limit == 1000
        assert status.daily_remaining == 999
        assert status.daily_reset_time == fake_now() + timedelta(days=1)

    def test_concurrent_consumption_never_over_admits(self):
        limiter = RateLimiter(daily_limit=500)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: limiter.try_consume_daily(), range(2000)))

        assert sum(results) == 500
        assert limiter.daily_remaining == 0

    def test_instances_are_isolated(self):
        first = RateLimiter(daily_limit=10)
        second = RateLimiter(daily_limit=10)

        first.set_daily_remaining(0)

        assert second.check_daily_limit() is True
