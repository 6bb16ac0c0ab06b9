"""User settings and usage statistics models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

from models.cache_models import CacheStatistics
from models.translation_models import SupportedLanguage

__all__: list[str] = ["DIFFICULTY_LEVELS", "Diagnostics", "Settings", "UsageStats"]

DIFFICULTY_LEVELS: Final[tuple[str, ...]] = ("beginner", "intermediate", "advanced")


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class Settings(DataClassJsonMixin):
    """User-facing settings edited from the popup.

    Attributes:
        enabled (bool): Whether word replacement is active.
        target_language (str): Language words are translated into.
        difficulty (str): One of ``DIFFICULTY_LEVELS``; forwarded to the intermediary server.
        replacement_percentage (int): Share of candidate words the page agent replaces (1-100).
    """

    enabled: bool = False
    target_language: str = "fr"
    difficulty: str = "beginner"
    replacement_percentage: int = 10


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class UsageStats(DataClassJsonMixin):
    vocabulary_size: int = 0
    learned_words_count: int = 0
    cache_size: int = 0
    target_language: str = ""
    difficulty: str = ""
    replacement_percentage: int = 0
    install_date: str = ""
    provider_error: str | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class Diagnostics(DataClassJsonMixin):
    """Provider and cache health shown on the options page.

    Attributes:
        provider (str): Name of the configured translation provider.
        server_available (bool): Result of the provider's availability check.
        provider_error (str | None): Outstanding configuration problem, if any.
        supported_languages (list[SupportedLanguage]): Target languages the provider offers.
        cache (CacheStatistics): Translation cache summary.
    """

    provider: str = ""
    server_available: bool = False
    provider_error: str | None = None
    supported_languages: list[SupportedLanguage] = field(default_factory=list)
    cache: CacheStatistics = field(default_factory=CacheStatistics)
