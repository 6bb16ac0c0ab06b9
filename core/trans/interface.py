"""This module defines the abstract base class for translation providers and related exceptions.
It includes the Result data class for translation results, and exceptions for configuration, quota and rate limits.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.identity import InstallationIdentityManager
    from core.rate_limiter import SlidingWindowRateLimiter
    from handlers.async_comm import AsyncHttp
    from models.config_models import Config
    from models.translation_models import SupportedLanguage

__all__: list[str] = [
    "EngineAttributes",
    "Result",
    "TransInterface",
    "TranslateExceptionError",
    "TranslationConfigurationError",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class EngineAttributes:
    """Provider-specific capabilities and behavior flags.

    Attributes:
        name (str): Name of the translation provider.
        supports_batch_requests (bool): Whether one HTTP call carries many words.
        requires_registration (bool): Whether the provider needs an installation identity.
        supports_feedback (bool): Whether user corrections can be reported to the provider.
    """

    name: str
    supports_batch_requests: bool = False
    requires_registration: bool = False
    supports_feedback: bool = False


@dataclass
class Result:
    """Data class for translation results.

    Attributes:
        text (str | None): Translated text. None if translation fails.
        detected_source_lang (str | None): Detected source language code. None if unknown.
        metadata (dict[str, str] | None): Provider-specific metadata.
    """

    text: str | None = None
    detected_source_lang: str | None = None
    metadata: dict[str, str] | None = None

    def __str__(self) -> str:
        if self.text is None:
            return ""
        return self.text

    def __repr__(self) -> str:
        return (
            f"Result(text={self.text!r}, detected_source_lang={self.detected_source_lang!r}, "
            f"metadata={self.metadata!r})"
        )


class TranslateExceptionError(Exception):
    """An error occurred during the translation process."""


class TranslationConfigurationError(TranslateExceptionError):
    """Credentials or installation identity are missing or were rejected."""


class TranslationQuotaExceededError(TranslateExceptionError):
    """The translatable character quota has been exceeded."""


class TranslationRateLimitError(TranslateExceptionError):
    """The translation request was rate-limited by the provider."""


class TransInterface(ABC):
    """Abstract base class for translation providers.

    A provider turns a list of words into a partial ``original -> Result`` mapping. Transient
    failures never escape ``translate_batch``: they degrade to missing words. Configuration
    failures are remembered in ``configuration_error`` so the settings surface can show them.

    Attributes:
        registered (ClassVar[dict[str, type[TransInterface]]]): A class variable that holds a dictionary of
            registered provider classes, keyed by their distinguished names.
    """

    registered: ClassVar[dict[str, type[TransInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass in the registered dictionary.

        Args:
            **kwargs: Additional keyword arguments passed to parent class.
        """
        super().__init_subclass__(**kwargs)
        if not hasattr(cls, "fetch_engine_name") or not callable(cls.fetch_engine_name):
            msg = "Subclasses of TransInterface must implement the static method fetch_engine_name()."
            raise TypeError(msg)

        if not isinstance(cls.fetch_engine_name(), str) or cls.fetch_engine_name() == "":
            return  # Providers with an empty name are allowed but never registered.

        if cls.fetch_engine_name() in cls.registered:
            msg: str = f"A translation provider with the name '{cls.fetch_engine_name()}' is already registered."
            raise ValueError(msg)

        cls.registered[cls.fetch_engine_name()] = cls

    def __init__(self) -> None:
        self._engine_attributes: EngineAttributes | None = None
        self._configuration_error: str | None = None

    @property
    def engine_attributes(self) -> EngineAttributes:
        if self._engine_attributes is None:
            msg = "Engine attributes have not been set."
            raise RuntimeError(msg)
        return self._engine_attributes

    @engine_attributes.setter
    def engine_attributes(self, attributes: EngineAttributes) -> None:
        if self._engine_attributes is not None:
            msg = "Engine attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._engine_attributes = attributes

    @property
    def engine_name(self) -> str:
        return self.engine_attributes.name

    @property
    def configuration_error(self) -> str | None:
        """Last configuration problem reported by the provider, None when healthy."""
        return self._configuration_error

    def set_configuration_error(self, err: TranslationConfigurationError | None) -> None:
        if err is None:
            self._configuration_error = None
            return
        if self._configuration_error != str(err):
            # Reported once per distinct problem.
            logger.warning("Translation provider '%s' is not configured: %s", self.fetch_engine_name(), err)
        self._configuration_error = str(err)

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider can currently accept requests.

        Returns:
            bool: True if the provider is available, False otherwise.
        """
        raise NotImplementedError

    @staticmethod
    @abstractmethod
    def fetch_engine_name() -> str:
        """Fetch the distinguished name of the provider.

        This method is called during class registration in __init_subclass__, so the
        implementation must be available at subclass definition time.

        Returns:
            str: The distinguished name of the provider.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(
        self,
        config: Config,
        *,
        http: AsyncHttp,
        rate_limiter: SlidingWindowRateLimiter,
        identity: InstallationIdentityManager,
    ) -> None:
        """Bind the provider to its configuration and shared collaborators.

        Args:
            config (Config): Application configuration.
            http (AsyncHttp): Shared HTTP client.
            rate_limiter (SlidingWindowRateLimiter): Limiter every outbound call must acquire.
            identity (InstallationIdentityManager): Installation identity (used by registering providers).
        """
        raise NotImplementedError

    @abstractmethod
    async def translate_batch(
        self,
        words: list[str],
        src_lang: str,
        tgt_lang: str,
        difficulty: str,
    ) -> dict[str, Result]:
        """Translate a list of words.

        Args:
            words (list[str]): Distinct words to translate.
            src_lang (str): Source language code, "auto" to let the provider detect it.
            tgt_lang (str): Target language code.
            difficulty (str): Learner difficulty level.

        Returns:
            dict[str, Result]: Translations keyed by the word as given. Words without a
            translation are absent; an empty mapping means the whole batch failed.
        """
        raise NotImplementedError

    async def submit_feedback(
        self,
        original_word: str,
        translated_word: str,
        feedback_type: str,
        custom_translation: str | None = None,
    ) -> bool:
        """Report a user correction to the provider.

        Providers without a feedback channel accept and ignore it.

        Returns:
            bool: True if the provider acknowledged the feedback.
        """
        _ = original_word, translated_word, feedback_type, custom_translation
        return False

    async def supported_languages(self) -> list[SupportedLanguage]:
        """List the target languages the provider offers.

        Providers without a language listing return an empty list.
        """
        return []

    async def is_server_available(self) -> bool:
        return self.is_available

    @abstractmethod
    async def close(self) -> None:
        """Release provider resources."""
        raise NotImplementedError

    def get_authentication_key(self) -> str:
        """Retrieve the authentication key from environment variables.

        The key is retrieved from an environment variable named after the provider's distinguished
        name, with the suffix "_API_OAUTH". For example, the "direct" provider reads "DIRECT_API_OAUTH".

        Returns:
            str: The authentication key, or an empty string if the environment variable is not set.
        """
        return os.getenv(f"{self.fetch_engine_name().upper()}_API_OAUTH", "")
