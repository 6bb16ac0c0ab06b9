from __future__ import annotations

import asyncio
import platform
import sys
from typing import TYPE_CHECKING, Any

from core.trans.interface import (
    EngineAttributes,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationConfigurationError,
)
from handlers.async_comm import AsyncCommError
from models.translation_models import ServerTranslation
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.identity import InstallationIdentityManager
    from core.rate_limiter import SlidingWindowRateLimiter
    from handlers.async_comm import AsyncHttp
    from models.config_models import Config


__all__: list[str] = ["IntermediaryTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class IntermediaryTranslation(TransInterface):
    """Batched translation through the intermediary server.

    The installation registers itself once (``POST /register``) and attaches the returned user id
    to every translation and feedback request. A failed registration is retried on the next
    batch; until it succeeds, batches come back empty.
    """

    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self.__rate_limiter: SlidingWindowRateLimiter | None = None
        self.__identity: InstallationIdentityManager | None = None
        self.__server_url: str = ""
        self.__batch_size: int = 50
        self.__version: str = ""
        self.__timeout: float = 5.0
        self.__available: bool = False
        self.__register_lock: asyncio.Lock = asyncio.Lock()

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The intermediary client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__http

    @property
    def _rate_limiter(self) -> SlidingWindowRateLimiter:
        if self.__rate_limiter is None:
            msg = "The intermediary client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__rate_limiter

    @property
    def _identity(self) -> InstallationIdentityManager:
        if self.__identity is None:
            msg = "The intermediary client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__identity

    @property
    def is_available(self) -> bool:
        return self.__available

    @property
    def batch_size(self) -> int:
        return self.__batch_size

    @staticmethod
    def fetch_engine_name() -> str:
        return "intermediary"

    def initialize(
        self,
        config: Config,
        *,
        http: AsyncHttp,
        rate_limiter: SlidingWindowRateLimiter,
        identity: InstallationIdentityManager,
    ) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name="intermediary",
            supports_batch_requests=True,
            requires_registration=True,
            supports_feedback=True,
        )
        self.__http = http
        self.__rate_limiter = rate_limiter
        self.__identity = identity
        self.__server_url = config.INTERMEDIARY.SERVER_URL.rstrip("/")
        self.__batch_size = max(1, config.INTERMEDIARY.BATCH_SIZE)
        self.__version = config.INTERMEDIARY.VERSION
        self.__timeout = config.TRANSLATION.TIMEOUT
        self.__available = True

    @staticmethod
    def _client_info() -> dict[str, str]:
        return {
            "platform": platform.system(),
            "python": sys.version.split()[0],
        }

    async def ensure_registered(self) -> str | None:
        """Register this installation with the server unless it already is.

        Concurrent callers share one attempt; the ones that waited see its outcome.

        Returns:
            str | None: The server-side user id, or None while registration has not succeeded.
        """
        if self._identity.is_registered:
            return self._identity.user_id

        async with self.__register_lock:
            if self._identity.is_registered:
                return self._identity.user_id
            return await self._register()

    async def _register(self) -> str | None:
        payload: dict[str, Any] = {
            "installation_id": self._identity.installation_id,
            "version": self.__version,
            "client_info": self._client_info(),
        }
        await self._rate_limiter.acquire()
        try:
            body: Any = await self._http.post(
                url=f"{self.__server_url}/register", data=payload, total_timeout=self.__timeout
            )
        except AsyncCommError as err:
            logger.warning("Failed to register with the translation server: %s", err)
            self.set_configuration_error(TranslationConfigurationError(f"Registration failed: {err.msg}"))
            return None

        user_id: str | None = body.get("user_id") if isinstance(body, dict) else None
        if not user_id:
            logger.warning("Registration response did not contain a user id")
            self.set_configuration_error(TranslationConfigurationError("Registration returned no user id"))
            return None

        await self._identity.mark_registered(str(user_id))
        self.set_configuration_error(None)
        logger.info("Registered with the translation server, user id: %s", user_id)
        return str(user_id)

    async def translate_batch(
        self,
        words: list[str],
        src_lang: str,
        tgt_lang: str,
        difficulty: str,
    ) -> dict[str, Result]:
        """Translate words in server batches of at most ``BATCH_SIZE`` words.

        Words missing from the server's answer have no translation. A failing batch only loses
        its own words.

        Returns:
            dict[str, Result]: Translations keyed by the word as given.
        """
        if not words:
            return {}

        user_id: str | None = await self.ensure_registered()
        if user_id is None:
            logger.debug("Not registered with the server, skipping %d word(s)", len(words))
            return {}

        translations: dict[str, Result] = {}
        for start in range(0, len(words), self.__batch_size):
            batch: list[str] = words[start : start + self.__batch_size]
            translations.update(await self._translate_chunk(batch, src_lang, tgt_lang, difficulty, user_id))
        return translations

    async def _translate_chunk(
        self,
        words: list[str],
        src_lang: str,
        tgt_lang: str,
        difficulty: str,
        user_id: str,
    ) -> dict[str, Result]:
        payload: dict[str, Any] = {
            "words": words,
            "source_language": src_lang,
            "target_language": tgt_lang,
            "difficulty_level": difficulty,
            "user_id": user_id,
        }
        await self._rate_limiter.acquire()
        try:
            body: Any = await self._http.post(
                url=f"{self.__server_url}/translate", data=payload, total_timeout=self.__timeout
            )
        except AsyncCommError as err:
            logger.debug("Server translation failed for %d word(s): %s", len(words), err)
            return {}

        if not isinstance(body, list):
            logger.debug("Unexpected server translation response: %r", type(body).__name__)
            return {}

        requested: dict[str, str] = {word.strip().lower(): word for word in words}
        results: dict[str, Result] = {}
        for raw in body:
            try:
                item: ServerTranslation = ServerTranslation.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.debug("Skipping malformed server translation: %r", raw)
                continue
            original: str | None = (
                requested.get(item.original_word.strip().lower()) if isinstance(item.original_word, str) else None
            )
            if original is None or not item.translated_word:
                continue
            results[original] = Result(text=item.translated_word, metadata={"engine": "intermediary"})

        logger.info("Received %d/%d translations from server", len(results), len(words))
        return results

    async def submit_feedback(
        self,
        original_word: str,
        translated_word: str,
        feedback_type: str,
        custom_translation: str | None = None,
    ) -> bool:
        """Send a user correction (``incorrect`` or ``custom``) to the server."""
        if not self._identity.is_registered:
            logger.debug("Not registered with the server, skipping feedback submission")
            return False

        payload: dict[str, Any] = {
            "user_id": self._identity.user_id,
            "original_word": original_word,
            "translated_word": translated_word,
            "feedback_type": feedback_type,
        }
        if custom_translation is not None:
            payload["custom_translation"] = custom_translation

        try:
            await self._http.post(url=f"{self.__server_url}/feedback", data=payload, total_timeout=self.__timeout)
        except AsyncCommError as err:
            logger.warning("Feedback submission failed: %s", err)
            return False
        logger.info("Feedback submitted: '%s' (%s)", original_word, feedback_type)
        return True

    async def is_server_available(self) -> bool:
        """Check server availability through ``GET {SERVER_URL}/stats``."""
        try:
            await self._http.get(url=f"{self.__server_url}/stats", total_timeout=self.__timeout)
        except AsyncCommError as err:
            logger.debug("Translation server is not available: %s", err)
            return False
        return True

    async def close(self) -> None:
        self.__available = False
        self.__http = None
        self.__rate_limiter = None
        logger.debug("'%s' process termination", self.__class__.__name__)
