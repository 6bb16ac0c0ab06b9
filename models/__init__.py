"""Data models for FluentTab.

This package contains dataclass definitions for configuration, persisted cache and vocabulary
documents, provider wire formats, settings, tab messages and coordinator requests.
"""

from __future__ import annotations

from models.cache_models import CacheEntry, CacheStatistics, build_cache_key
from models.config_models import Config
from models.message_models import DeliveryResult, ProgressUpdate, TranslationReady, WordCandidate
from models.request_models import Request, Response
from models.settings_models import Settings, UsageStats
from models.translation_models import InstallationIdentity, SupportedLanguage
from models.vocabulary_models import CustomTranslation, IncorrectTranslation, VocabularyEntry, VocabularyStats

__all__: list[str] = [
    "CacheEntry",
    "CacheStatistics",
    "Config",
    "CustomTranslation",
    "DeliveryResult",
    "IncorrectTranslation",
    "InstallationIdentity",
    "ProgressUpdate",
    "Request",
    "Response",
    "Settings",
    "SupportedLanguage",
    "TranslationReady",
    "UsageStats",
    "VocabularyEntry",
    "VocabularyStats",
    "WordCandidate",
    "build_cache_key",
]
