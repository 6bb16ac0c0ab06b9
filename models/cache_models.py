"""Models for translation cache data.

Defines the persisted cache entry and the statistics snapshot reported for diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

from utils.string_utils import StringUtils

__all__: list[str] = [
    "CacheEntry",
    "CacheStatistics",
    "build_cache_key",
]

CACHE_KEY_SEPARATOR: str = "|"


def build_cache_key(normalized_word: str, source_lang: str, target_lang: str) -> str:
    """Build the composite cache key, e.g. ``house|auto|fr``.

    Args:
        normalized_word (str): Word already normalized by ``StringUtils.normalize_word``.
        source_lang (str): Source language code ("auto" when detected by the provider).
        target_lang (str): Target language code.

    Returns:
        str: Composite key.
    """
    return CACHE_KEY_SEPARATOR.join((normalized_word, source_lang, target_lang))


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheEntry(DataClassJsonMixin):
    """Translation cache entry.

    Attributes:
        word (str): Normalized source word.
        source_lang (str): Source language code.
        target_lang (str): Target language code.
        translation (str): Translated text.
        created_at (float): Creation time as epoch seconds.
        custom (bool): True if the entry was supplied by the user rather than a provider.
        detected_source_lang (str | None): Source language reported by the provider, if any.
    """

    word: str
    source_lang: str
    target_lang: str
    translation: str
    created_at: float
    custom: bool = False
    detected_source_lang: str | None = None

    @property
    def key(self) -> str:
        return build_cache_key(self.word, self.source_lang, self.target_lang)

    @property
    def is_useful(self) -> bool:
        """False when the provider returned the word itself; such entries are cached but never shown."""
        return not StringUtils.is_same_word(self.word, self.translation)

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now > self.created_at + ttl_seconds


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheStatistics(DataClassJsonMixin):
    """Cache usage statistics.

    Attributes:
        total_entries (int): Number of entries held in memory (expired ones included until swept).
        custom_entries (int): Entries created from user overrides.
        non_useful_entries (int): Entries whose translation equals the source word.
        estimated_size (int): Length of the serialized cache document in characters.
        oldest_entry (float | None): Creation time of the oldest entry.
        newest_entry (float | None): Creation time of the newest entry.
    """

    total_entries: int = 0
    custom_entries: int = 0
    non_useful_entries: int = 0
    estimated_size: int = 0
    oldest_entry: float | None = None
    newest_entry: float | None = None
