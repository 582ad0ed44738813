"""
Dual-quota admission control.

Two independent gates guard every attempt:

1. Interval gate: token bucket sized from "max burst per 10 seconds"
   (refill rate = burst / 10 tokens per second, capacity = burst).
   Acquiring suspends the attempt until a token is available or the
   call's CallContext is cancelled / reaches its deadline.
2. Daily gate: a best-effort local counter, seeded from the configured
   daily limit and overwritten by the server's authoritative counters
   after every completed round trip.

One RateLimiter belongs to one client instance; it is never shared
through module state. Internal state is guarded by threading locks held
only for arithmetic, never across an await.
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import structlog

from hubspot_client.exceptions import RequestTimeoutError
from hubspot_client.models.context import CallContext
from hubspot_client.models.response import RateLimitStatus, Response

WINDOW_SECONDS = 10.0
DEFAULT_DAILY_LIMIT = 250_000


class TokenBucket:
    """
    Thread-safe token bucket with reservation semantics.

    Each acquire() takes a token immediately, going into debt if needed,
    and then sleeps off the debt. Waiters are therefore served in the
    order they reserved, and nobody spins.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if rate <= 0:
            raise ValueError("rate must be > 0")
        if burst < 1:
            raise ValueError("burst must be >= 1")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self._updated
        if elapsed > 0:
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._updated = now

    @property
    def tokens(self) -> float:
        with self._lock:
            self._refill(self._clock())
            return self._tokens

    def reserve(self) -> float:
        """Take one token now; return the seconds the caller must wait for it."""
        with self._lock:
            self._refill(self._clock())
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.rate

    def release(self) -> None:
        """Give back a reserved token whose wait was abandoned."""
        with self._lock:
            self._refill(self._clock())
            self._tokens = min(float(self.burst), self._tokens + 1.0)

    async def acquire(self, context: CallContext) -> float:
        """
        Wait for one token.

        Returns:
            Seconds spent waiting (0.0 when a token was immediately available)

        Raises:
            RequestCancelledError: context cancelled while waiting
            RequestTimeoutError: the wait cannot finish before the deadline
        """
        context.check()
        wait = self.reserve()
        if wait <= 0:
            return 0.0

        remaining = context.remaining()
        if remaining is not None and wait > remaining:
            self.release()
            raise RequestTimeoutError(
                "Rate limit wait would exceed the request deadline",
                details={"wait_seconds": wait, "remaining_seconds": remaining},
            )

        try:
            await context.sleep(wait)
        except BaseException:
            self.release()
            raise
        return wait


class RateLimiter:
    """
    Per-client admission gate combining the token bucket and daily quota.

    Attributes:
        bucket: Interval gate
    """

    def __init__(
        self,
        max_burst: int = 100,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        logger: Any = None,
    ):
        self.logger = logger if logger is not None else structlog.get_logger(__name__)
        self.bucket = TokenBucket(rate=max_burst / WINDOW_SECONDS, burst=max_burst, clock=clock)
        self._now = now
        self._lock = threading.Lock()
        self._daily_limit = daily_limit
        self._daily_remaining = daily_limit
        self._daily_reset_time = now() + timedelta(days=1)

        self.logger.debug(
            "Rate limiter initialized",
            max_burst=max_burst,
            refill_per_second=self.bucket.rate,
            daily_limit=daily_limit,
        )

    # === Interval gate ===

    async def wait(self, context: CallContext) -> float:
        """Block the attempt until the interval gate admits it."""
        waited = await self.bucket.acquire(context)
        if waited > 0:
            self.logger.debug("Waited for rate limit token", wait_seconds=round(waited, 3))
        return waited

    # === Daily gate ===

    def _roll_daily_window(self) -> None:
        # Caller holds self._lock
        now = self._now()
        if now < self._daily_reset_time:
            return
        while self._daily_reset_time <= now:
            self._daily_reset_time += timedelta(days=1)
        self._daily_remaining = self._daily_limit
        self.logger.info(
            "Daily rate limit window reset",
            daily_limit=self._daily_limit,
            next_reset=self._daily_reset_time.isoformat(),
        )

    def check_daily_limit(self) -> bool:
        """Non-blocking: True if the local daily quota still has room."""
        with self._lock:
            self._roll_daily_window()
            return self._daily_remaining > 0

    def try_consume_daily(self) -> bool:
        """
        Admit one call against the local daily counter.

        Decrements the counter when admitted; server feedback later
        overwrites it with the authoritative value.
        """
        with self._lock:
            self._roll_daily_window()
            if self._daily_remaining <= 0:
                return False
            self._daily_remaining -= 1
            return True

    def update_from_response(self, response: Response) -> None:
        """
        Overwrite the daily counters with the server's values.

        Only the counters whose header is present are overwritten.
        """
        info = response.rate_limit
        if not info.has_daily:
            return
        with self._lock:
            if info.has_daily_remaining:
                self._daily_remaining = info.daily_remaining
            if info.has_daily_limit:
                self._daily_limit = info.daily_limit
            daily_limit, daily_remaining = self._daily_limit, self._daily_remaining
        self.logger.debug(
            "Rate limiter synced from response",
            daily_limit=daily_limit,
            daily_remaining=daily_remaining,
            interval_remaining=info.remaining,
        )

    def set_daily_remaining(self, remaining: int) -> None:
        with self._lock:
            self._daily_remaining = remaining

    @property
    def daily_remaining(self) -> int:
        with self._lock:
            return self._daily_remaining

    @property
    def daily_limit(self) -> int:
        with self._lock:
            return self._daily_limit

    @property
    def daily_reset_time(self) -> datetime:
        with self._lock:
            return self._daily_reset_time

    def snapshot(self) -> RateLimitStatus:
        with self._lock:
            return RateLimitStatus(
                daily_limit=self._daily_limit,
                daily_remaining=self._daily_remaining,
                daily_reset_time=self._daily_reset_time,
            )
