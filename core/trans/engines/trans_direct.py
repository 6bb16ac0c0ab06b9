from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar, Final

from core.trans.interface import (
    EngineAttributes,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationConfigurationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from handlers.async_comm import AsyncCommError
from models.translation_models import DirectTranslationResponse, SupportedLanguage
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from core.identity import InstallationIdentityManager
    from core.rate_limiter import SlidingWindowRateLimiter
    from handlers.async_comm import AsyncHttp
    from models.config_models import Config


__all__: list[str] = ["DirectTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTP_FORBIDDEN: Final[int] = 403
HTTP_UNAUTHORIZED: Final[int] = 401
HTTP_TOO_MANY_REQUESTS: Final[int] = 429
HTTP_QUOTA_EXCEEDED: Final[int] = 456


class DirectTranslation(TransInterface):
    """Word-by-word translation against the provider's HTTP API.

    Every word is one rate-limited ``POST /translate`` call; the words of a batch are sent
    concurrently and the batch completes when all of them have resolved. Words that failed once
    are not sent again during this session.
    """

    DEFAULT_LANGUAGES: ClassVar[tuple[SupportedLanguage, ...]] = (
        SupportedLanguage("en", "English"),
        SupportedLanguage("es", "Spanish"),
        SupportedLanguage("fr", "French"),
        SupportedLanguage("de", "German"),
        SupportedLanguage("it", "Italian"),
        SupportedLanguage("pt", "Portuguese"),
        SupportedLanguage("ru", "Russian"),
        SupportedLanguage("ja", "Japanese"),
        SupportedLanguage("ko", "Korean"),
        SupportedLanguage("zh", "Chinese"),
        SupportedLanguage("nl", "Dutch"),
        SupportedLanguage("pl", "Polish"),
    )

    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self.__rate_limiter: SlidingWindowRateLimiter | None = None
        self.__api_url: str = ""
        self.__timeout: float = 5.0
        self.__available: bool = False
        self._failed_words: set[str] = set()

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The direct translation client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__http

    @property
    def _rate_limiter(self) -> SlidingWindowRateLimiter:
        if self.__rate_limiter is None:
            msg = "The direct translation client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__rate_limiter

    @property
    def is_available(self) -> bool:
        return self.__available

    @property
    def failed_words(self) -> frozenset[str]:
        return frozenset(self._failed_words)

    @staticmethod
    def fetch_engine_name() -> str:
        return "direct"

    def initialize(
        self,
        config: Config,
        *,
        http: AsyncHttp,
        rate_limiter: SlidingWindowRateLimiter,
        identity: InstallationIdentityManager,
    ) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        _ = identity  # Indicate unused.

        self.engine_attributes = EngineAttributes(name="direct")
        self.__http = http
        self.__rate_limiter = rate_limiter
        self.__api_url = config.DIRECT.API_URL.rstrip("/")
        self.__timeout = config.TRANSLATION.TIMEOUT
        self.__available = bool(self.get_authentication_key())
        if not self.__available:
            self.set_configuration_error(
                TranslationConfigurationError("API key not configured (set the DIRECT_API_OAUTH environment variable)")
            )

    async def translate_batch(
        self,
        words: list[str],
        src_lang: str,
        tgt_lang: str,
        difficulty: str,
    ) -> dict[str, Result]:
        """Translate words one request at a time.

        A missing API key degrades to an empty result without any network traffic.

        Args:
            words (list[str]): Distinct words to translate.
            src_lang (str): Source language code or "auto".
            tgt_lang (str): Target language code.
            difficulty (str): Ignored by this provider.

        Returns:
            dict[str, Result]: Successful translations keyed by the word as given.
        """
        _ = difficulty  # Indicate unused.
        auth_key: str = self.get_authentication_key()
        if not auth_key:
            self.set_configuration_error(
                TranslationConfigurationError("API key not configured (set the DIRECT_API_OAUTH environment variable)")
            )
            return {}

        pending: list[str] = [word for word in words if StringUtils.normalize_word(word) not in self._failed_words]
        if len(pending) < len(words):
            logger.debug("Skipping %d previously failed word(s)", len(words) - len(pending))

        results: list[Result | None] = await asyncio.gather(
            *(self._translate_word(word, src_lang, tgt_lang, auth_key) for word in pending)
        )
        return {word: result for word, result in zip(pending, results, strict=True) if result is not None}

    async def _translate_word(self, word: str, src_lang: str, tgt_lang: str, auth_key: str) -> Result | None:
        """Translate a single word, absorbing and memoizing failures."""
        try:
            return await self.translation(word, tgt_lang, src_lang, auth_key=auth_key)
        except TranslationConfigurationError as err:
            self.set_configuration_error(err)
            self._failed_words.add(StringUtils.normalize_word(word))
        except (TranslationRateLimitError, TranslationQuotaExceededError) as err:
            # Throttling says nothing about the word itself.
            logger.debug("Provider refused '%s': %s", word, err)
        except TranslateExceptionError as err:
            logger.debug("Translation failed for '%s': %s", word, err)
            self._failed_words.add(StringUtils.normalize_word(word))
        return None

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None, *, auth_key: str) -> Result:
        """Translate one word through ``POST {API_URL}/translate``.

        Args:
            content (str): Word to translate.
            tgt_lang (str): Target language code.
            src_lang (str | None): Source language code; None or "auto" lets the provider detect it.
            auth_key (str): Provider API key.

        Returns:
            Result: Translated text and detected source language.

        Raises:
            TranslationConfigurationError: If the provider rejected the API key.
            TranslationQuotaExceededError: If the character quota has been exceeded.
            TranslationRateLimitError: If the provider throttled the request.
            TranslateExceptionError: On any other failure or an unusable response.
        """
        form: dict[str, str] = {
            "text": content,
            "target_lang": tgt_lang.upper(),
            "auth_key": auth_key,
        }
        if src_lang and src_lang != "auto":
            form["source_lang"] = src_lang.upper()

        await self._rate_limiter.acquire()
        try:
            body = await self._http.post(url=f"{self.__api_url}/translate", form=form, total_timeout=self.__timeout)
        except AsyncCommError as err:
            raise self._map_comm_error(err) from err

        try:
            response: DirectTranslationResponse = DirectTranslationResponse.from_dict(body)
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            msg = "Unexpected response format from the translation provider"
            raise TranslateExceptionError(msg) from err

        if not response.translations or not response.translations[0].text:
            msg = "The translation provider returned no translation"
            raise TranslateExceptionError(msg)

        item = response.translations[0]
        self.set_configuration_error(None)
        logger.debug("translation completed (%s > %s): '%s'", src_lang, tgt_lang, content)
        return Result(
            text=item.text,
            detected_source_lang=item.detected_source_language.lower() if item.detected_source_language else None,
            metadata={"engine": "direct"},
        )

    def _map_comm_error(self, err: AsyncCommError) -> TranslateExceptionError:
        if err.status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            return TranslationConfigurationError("Authorisation failed. Please check your API key")
        if err.status == HTTP_TOO_MANY_REQUESTS:
            return TranslationRateLimitError("Provider rate limit reached")
        if err.status == HTTP_QUOTA_EXCEEDED:
            self.__available = False
            return TranslationQuotaExceededError("Provider character quota exceeded")
        return TranslateExceptionError(f"Translation request failed: {err.msg}")

    async def supported_languages(self) -> list[SupportedLanguage]:
        """Fetch the provider's target languages, falling back to the built-in list."""
        auth_key: str = self.get_authentication_key()
        if not auth_key:
            return list(self.DEFAULT_LANGUAGES)

        try:
            body = await self._http.get(
                url=f"{self.__api_url}/languages",
                params={"auth_key": auth_key},
                total_timeout=self.__timeout,
            )
            languages: list[SupportedLanguage] = [
                SupportedLanguage(code=str(item["language"]).lower(), name=str(item["name"])) for item in body
            ]
        except AsyncCommError as err:
            logger.debug("Fetching supported languages failed: %s", err)
            return list(self.DEFAULT_LANGUAGES)
        except (KeyError, TypeError) as err:
            logger.debug("Unexpected supported languages response: %s", err)
            return list(self.DEFAULT_LANGUAGES)
        return languages or list(self.DEFAULT_LANGUAGES)

    async def is_server_available(self) -> bool:
        return self.__available and bool(self.get_authentication_key())

    async def close(self) -> None:
        """Detach from the shared HTTP client; the owner closes the session."""
        self.__available = False
        self.__http = None
        self.__rate_limiter = None
        logger.debug("'%s' process termination", self.__class__.__name__)
