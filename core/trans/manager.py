from __future__ import annotations

from typing import TYPE_CHECKING

from core.trans.engines import (
    DirectTranslation,  # noqa: F401
    IntermediaryTranslation,  # noqa: F401
)
from core.trans.interface import Result, TransInterface, TranslateExceptionError
from models.cache_models import build_cache_key
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import asyncio
    import logging

    from core.cache.inflight_manager import InFlightManager
    from core.identity import InstallationIdentityManager
    from core.rate_limiter import SlidingWindowRateLimiter
    from handlers.async_comm import AsyncHttp
    from models.config_models import Config
    from models.translation_models import SupportedLanguage


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TransManager:
    """Manager for the configured translation provider.

    Selects the provider named by ``TRANSLATION.PROVIDER`` from the provider registry, and
    shares in-flight requests between callers so that one (word, source, target) combination is
    never requested twice at the same time.
    """

    def __init__(self, config: Config, inflight_manager: InFlightManager) -> None:
        self.config: Config = config
        self.inflight_manager: InFlightManager = inflight_manager
        self._provider: TransInterface | None = None
        logger.debug("Registered translation providers: %s", list(TransInterface.registered))

    def initialize(
        self,
        *,
        http: AsyncHttp,
        rate_limiter: SlidingWindowRateLimiter,
        identity: InstallationIdentityManager,
    ) -> None:
        """Instantiate and initialize the configured provider.

        Raises:
            TranslateExceptionError: If the provider name is not registered.
        """
        name: str = self.config.TRANSLATION.PROVIDER
        cls: type[TransInterface] | None = TransInterface.registered.get(name)
        if cls is None:
            msg: str = f"Translation provider not found: '{name}'"
            logger.critical(msg)
            raise TranslateExceptionError(msg)

        instance: TransInterface = cls()
        instance.initialize(self.config, http=http, rate_limiter=rate_limiter, identity=identity)
        self._provider = instance
        logger.info("Translation provider initialized: '%s'", name)
        logger.debug("Engine attributes: %s", instance.engine_attributes)

    @property
    def provider(self) -> TransInterface:
        if self._provider is None:
            msg = "No translation provider has been initialized"
            raise TranslateExceptionError(msg)
        return self._provider

    @property
    def provider_error(self) -> str | None:
        return self._provider.configuration_error if self._provider else None

    async def translate_words(
        self,
        words: list[str],
        src_lang: str,
        tgt_lang: str,
        difficulty: str,
    ) -> dict[str, Result]:
        """Translate distinct words, joining requests already in flight for the same key.

        Args:
            words (list[str]): Words to translate; duplicates after normalization are sent once.
            src_lang (str): Source language code.
            tgt_lang (str): Target language code.
            difficulty (str): Learner difficulty level.

        Returns:
            dict[str, Result]: Translations keyed by normalized word. Failures are absent.
        """
        to_request: dict[str, str] = {}
        waiting: dict[str, tuple[str, asyncio.Future[Result | None]]] = {}
        for word in words:
            cache_key: str = build_cache_key(StringUtils.normalize_word(word), src_lang, tgt_lang)
            if cache_key in to_request or cache_key in waiting:
                continue
            fut: asyncio.Future[Result | None] | None = self.inflight_manager.claim(cache_key)
            if fut is None:
                to_request[cache_key] = word
            else:
                waiting[cache_key] = (word, fut)

        translations: dict[str, Result] = {}
        if to_request:
            produced: dict[str, Result] = {}
            try:
                produced = await self.provider.translate_batch(
                    list(to_request.values()), src_lang, tgt_lang, difficulty
                )
            except TranslateExceptionError as err:
                logger.debug("Translation batch failed: %s", err)
            finally:
                for cache_key, word in to_request.items():
                    if word in produced:
                        self.inflight_manager.resolve(cache_key, produced[word])
                # Keys still claimed here have no result; waiters must not hang on them.
                self.inflight_manager.release(to_request)
            for word, translated in produced.items():
                translations[StringUtils.normalize_word(word)] = translated

        for cache_key, (word, fut) in waiting.items():
            result: Result | None = await self.inflight_manager.wait(cache_key, fut)
            if result is not None:
                translations[StringUtils.normalize_word(word)] = result

        return translations

    async def submit_feedback(
        self,
        original_word: str,
        translated_word: str,
        feedback_type: str,
        custom_translation: str | None = None,
    ) -> bool:
        if not self.provider.engine_attributes.supports_feedback:
            return False
        return await self.provider.submit_feedback(original_word, translated_word, feedback_type, custom_translation)

    async def supported_languages(self) -> list[SupportedLanguage]:
        return await self.provider.supported_languages()

    async def is_server_available(self) -> bool:
        return await self.provider.is_server_available()

    async def close(self) -> None:
        self.inflight_manager.cancel_all()
        if self._provider is not None:
            await self._provider.close()
        logger.info("TransManager shut down")
