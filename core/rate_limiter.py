"""Sliding-window rate limiter guarding the metered translation provider."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable


__all__: list[str] = ["SlidingWindowRateLimiter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class SlidingWindowRateLimiter:
    """Bound outbound requests to ``max_requests`` per ``window_ms``.

    Reservation timestamps are kept in order; a caller that finds the window full sleeps until
    the oldest reservation leaves the window and then re-evaluates, because other waiters may
    have taken the freed slot in the meantime. The check and the reservation happen without an
    intervening ``await``, so concurrent callers on one event loop never over-book the window.

    Attributes:
        EPSILON_SEC (ClassVar[float]): Extra delay added to every computed wait.
    """

    EPSILON_SEC: ClassVar[float] = 0.001

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            max_requests (int): Requests allowed per window.
            window_ms (int): Window length in milliseconds.
            clock (Callable[[], float]): Monotonic time source in seconds.
            sleep (Callable[[float], Awaitable[None]]): Coroutine used to suspend callers.

        Raises:
            ValueError: If ``max_requests`` or ``window_ms`` is not positive.
        """
        if max_requests <= 0:
            msg: str = f"max_requests must be positive (got {max_requests}); the limiter would never grant a slot"
            raise ValueError(msg)
        if window_ms <= 0:
            msg = f"window_ms must be positive (got {window_ms})"
            raise ValueError(msg)

        self.max_requests: int = max_requests
        self.window_sec: float = window_ms / 1000.0
        self._clock: Callable[[], float] = clock
        self._sleep: Callable[[float], Awaitable[None]] = sleep
        self._reservations: deque[float] = deque()
        logger.debug("Rate limiter configured: %d request(s) per %.3f sec", max_requests, self.window_sec)

    def _evict(self, now: float) -> None:
        while self._reservations and now - self._reservations[0] >= self.window_sec:
            self._reservations.popleft()

    def in_window(self) -> int:
        """Return the number of reservations currently inside the window."""
        self._evict(self._clock())
        return len(self._reservations)

    def try_acquire(self) -> bool:
        """Reserve a slot if one is free right now, without waiting."""
        now: float = self._clock()
        self._evict(now)
        if len(self._reservations) < self.max_requests:
            self._reservations.append(now)
            return True
        return False

    async def acquire(self) -> float:
        """Suspend until a request slot is available, then reserve it.

        Returns:
            float: Total seconds spent waiting.
        """
        waited: float = 0.0
        while not self.try_acquire():
            wait: float = self.window_sec - (self._clock() - self._reservations[0]) + self.EPSILON_SEC
            wait = max(wait, self.EPSILON_SEC)
            logger.debug("Rate limit reached; waiting %.3f sec", wait)
            await self._sleep(wait)
            waited += wait
        return waited
