"""Background service composition.

This module defines the BackgroundService class, which constructs every service of the
translation pipeline explicitly, loads their persisted state at startup, keeps the translation
cache swept, and shuts everything down in order.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import TYPE_CHECKING

from core.cache.inflight_manager import InFlightManager
from core.cache.manager import TranslationCacheManager
from core.coordinator import Coordinator
from core.identity import InstallationIdentityManager
from core.messenger import CallbackTabMessenger
from core.overrides import OverrideStore
from core.rate_limiter import SlidingWindowRateLimiter
from core.settings import SettingsManager
from core.storage import StateStore
from core.trans.manager import TransManager
from core.vocabulary import VocabularyTracker
from handlers.async_comm import AsyncHttp
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.messenger import TabMessenger
    from models.config_models import Config
    from models.request_models import Request, Response


__all__: list[str] = ["BackgroundService"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SECONDS_PER_HOUR: float = 60 * 60


class BackgroundService:
    """Owns the lifetime of every pipeline service.

    Attributes:
        config (Config): Application configuration.
        store (StateStore): Persistence backend shared by all services.
        messenger (TabMessenger): Outbound boundary to the tabs.
        coordinator (Coordinator): Entry point for every request.
    """

    def __init__(self, config: Config, *, messenger: TabMessenger | None = None, http: AsyncHttp | None = None) -> None:
        self.config: Config = config
        self.store = StateStore(config.GENERAL.DB_PATH)
        self.http: AsyncHttp = http or AsyncHttp()
        self.messenger: TabMessenger = messenger or CallbackTabMessenger()

        self.cache = TranslationCacheManager(
            self.store,
            ttl_seconds=config.CACHE.TTL_HOURS * SECONDS_PER_HOUR,
            persist_every=config.CACHE.PERSIST_EVERY,
        )
        self.vocabulary = VocabularyTracker(self.store)
        self.overrides = OverrideStore(self.store)
        self.settings = SettingsManager(self.store)
        self.identity = InstallationIdentityManager(self.store)
        self.rate_limiter = SlidingWindowRateLimiter(config.RATE_LIMIT.MAX_REQUESTS, config.RATE_LIMIT.WINDOW_MS)
        self.inflight_manager = InFlightManager(timeout=config.QUEUE.INFLIGHT_TIMEOUT)
        self.trans_manager = TransManager(config, self.inflight_manager)
        self.coordinator = Coordinator(
            config,
            store=self.store,
            cache=self.cache,
            vocabulary=self.vocabulary,
            overrides=self.overrides,
            settings=self.settings,
            identity=self.identity,
            trans_manager=self.trans_manager,
            messenger=self.messenger,
        )
        self._sweep_task: asyncio.Task[None] | None = None
        self._is_loaded: bool = False

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    async def component_load(self) -> None:
        """Open the store, load persisted state and start cache maintenance.

        Raises:
            StateStoreError: If the state database cannot be opened.
            TranslateExceptionError: If the configured provider is not registered.
        """
        logger.info("Background service starting")
        await self.store.open()
        await self.identity.component_load()
        await self.settings.component_load()
        await self.cache.component_load()
        await self.vocabulary.component_load()
        await self.overrides.component_load()
        self.trans_manager.initialize(http=self.http, rate_limiter=self.rate_limiter, identity=self.identity)

        await self.cache.sweep_expired()
        self._sweep_task = asyncio.create_task(self._sweep_periodically(), name="cache-sweep")
        self._is_loaded = True
        logger.info("Background service started")

    async def component_teardown(self) -> None:
        """Stop maintenance, flush the cache and close HTTP and the database."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

        await self.trans_manager.close()
        await self.cache.component_teardown()
        await self.http.close()
        await self.store.close()
        self._is_loaded = False
        logger.info("Background service stopped")

    async def handle(self, request: Request) -> Response:
        return await self.coordinator.handle(request)

    async def _sweep_periodically(self) -> None:
        interval: float = self.config.CACHE.SWEEP_INTERVAL_HOURS * SECONDS_PER_HOUR
        while True:
            await asyncio.sleep(interval)
            removed: int = await self.cache.sweep_expired()
            logger.debug("Periodic cache sweep removed %d entr(ies)", removed)
