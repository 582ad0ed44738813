"""
Cancellation and deadline handle threaded through every call.

All three suspension points of a call (token acquisition, retry backoff,
network I/O) wait through the same CallContext, so cancelling it or
letting its deadline pass aborts whichever one is in progress.

Native asyncio task cancellation is honoured too and always propagates
as asyncio.CancelledError.
"""

import asyncio
import time
from typing import Awaitable, TypeVar

from hubspot_client.exceptions import RequestCancelledError, RequestTimeoutError

T = TypeVar("T")


class CallContext:
    """
    Cancellation/deadline handle for one logical call.

    Usage:
        >>> ctx = CallContext(timeout=5.0)
        >>> response = await client.do(request, ctx)

    ``cancel()`` must be called from the event loop thread that runs the
    call (use ``loop.call_soon_threadsafe(ctx.cancel)`` from other threads).
    """

    def __init__(self, timeout: float | None = None, *, deadline: float | None = None):
        """
        Args:
            timeout: Seconds from now until the call is abandoned
            deadline: Absolute time.monotonic() deadline (overrides timeout)
        """
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self._deadline = deadline
        self._cancelled = False
        self._event = asyncio.Event()

    @classmethod
    def background(cls) -> "CallContext":
        """Context that is never cancelled and has no deadline."""
        return cls()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        self._cancelled = True
        self._event.set()

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the call was cancelled or its deadline passed."""
        if self._cancelled:
            raise RequestCancelledError("Request cancelled")
        if self.expired:
            raise RequestTimeoutError(
                "Request deadline exceeded",
                details={"deadline": self._deadline},
            )

    async def sleep(self, seconds: float) -> None:
        """
        Suspend for ``seconds`` unless cancelled or the deadline comes first.

        Raises:
            RequestCancelledError: cancel() was called while waiting
            RequestTimeoutError: the deadline passed while waiting
        """
        self.check()
        remaining = self.remaining()
        timeout = seconds if remaining is None else min(seconds, remaining)
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(timeout, 0.0))
        except asyncio.TimeoutError:
            if remaining is not None and remaining <= seconds:
                raise RequestTimeoutError(
                    "Request deadline exceeded",
                    details={"deadline": self._deadline},
                ) from None
            return
        self.check()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` racing it against cancellation and the deadline.

        The awaitable is cancelled when the context wins the race.
        """
        self.check()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        await asyncio.gather(task, return_exceptions=True)
        self.check()
        raise RequestTimeoutError("Request deadline exceeded")

    def __repr__(self) -> str:
        return (
            f"CallContext(cancelled={self._cancelled}, "
            f"remaining={self.remaining()})"
        )
