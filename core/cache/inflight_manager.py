"""In-flight translation tracking shared by concurrent tab queues."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable

    from core.trans.interface import Result


__all__: list[str] = ["InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightManager:
    """Tracks cache keys currently being translated so concurrent tabs share one request.

    The first caller to ``claim`` a key becomes its producer and must later ``resolve`` it
    (with a result or None). Later callers receive the producer's future and ``wait`` on it.

    Attributes:
        INFLIGHT_TIMEOUT_SEC (ClassVar[float]): Default wait bound for consumers.
    """

    INFLIGHT_TIMEOUT_SEC: ClassVar[float] = 10.0

    def __init__(self, timeout: float | None = None) -> None:
        self._inflight: dict[str, asyncio.Future[Result | None]] = {}
        self.timeout: float = self.INFLIGHT_TIMEOUT_SEC if timeout is None else timeout

    @property
    def pending_count(self) -> int:
        return len(self._inflight)

    def claim(self, cache_key: str) -> asyncio.Future[Result | None] | None:
        """Register interest in a key.

        Args:
            cache_key (str): Cache key of the word being translated.

        Returns:
            asyncio.Future[Result | None] | None: None if the caller is now the producer,
            otherwise the producer's future to wait on.
        """
        fut: asyncio.Future[Result | None] | None = self._inflight.get(cache_key)
        if fut is not None:
            logger.debug("In-flight translation detected for key: %s", cache_key)
            return fut

        self._inflight[cache_key] = asyncio.get_running_loop().create_future()
        return None

    def resolve(self, cache_key: str, result: Result | None) -> None:
        """Publish the producer's result and forget the key."""
        fut: asyncio.Future[Result | None] | None = self._inflight.pop(cache_key, None)
        if fut is not None and not fut.done():
            fut.set_result(result)

    def release(self, cache_keys: Iterable[str]) -> None:
        """Resolve every still-pending key with None (used when the producer gives up)."""
        for cache_key in cache_keys:
            self.resolve(cache_key, None)

    async def wait(self, cache_key: str, fut: asyncio.Future[Result | None]) -> Result | None:
        """Wait for another producer's result.

        Timeouts and cancellation of the shared future are reported as "no result"; the shared
        future itself is never cancelled by a waiting consumer.
        """
        try:
            return await asyncio.wait_for(asyncio.shield(fut), timeout=self.timeout)
        except TimeoutError:
            logger.warning("In-flight translation timeout for key: %s", cache_key)
        except asyncio.CancelledError:
            if not fut.cancelled():
                raise
            logger.warning("In-flight translation cancelled for key: %s", cache_key)
        return None

    def cancel_all(self) -> None:
        """Cancel every pending future (service shutdown)."""
        for fut in self._inflight.values():
            if not fut.done():
                fut.cancel()
        self._inflight.clear()
