"""User overrides: blacklist, custom translations and the incorrect-translation log."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from core.storage import CUSTOM_TRANSLATIONS_KEY, INCORRECT_TRANSLATIONS_KEY, WORD_BLACKLIST_KEY
from models.vocabulary_models import CustomTranslation, IncorrectTranslation
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from core.storage import StateStore

__all__: list[str] = ["OverrideStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class OverrideStore:
    """Persisted user corrections that take precedence over provider results.

    Words are keyed by their normalized form. The blacklist grows monotonically until a full
    data clear; custom translations are per word and remember the target language they were
    written for.
    """

    def __init__(self, store: StateStore, *, clock: Callable[[], float] = time.time) -> None:
        self._store: StateStore = store
        self._clock: Callable[[], float] = clock
        self._blacklist: set[str] = set()
        self._custom: dict[str, CustomTranslation] = {}
        self._incorrect: list[IncorrectTranslation] = []

    async def component_load(self) -> None:
        raw_blacklist: Any = await self._store.load(WORD_BLACKLIST_KEY, default=[])
        raw_custom: Any = await self._store.load(CUSTOM_TRANSLATIONS_KEY, default={})
        raw_incorrect: Any = await self._store.load(INCORRECT_TRANSLATIONS_KEY, default=[])

        self._blacklist = (
            {StringUtils.normalize_word(word) for word in raw_blacklist} if isinstance(raw_blacklist, list) else set()
        )
        self._custom = {}
        if isinstance(raw_custom, dict):
            for word, raw in raw_custom.items():
                try:
                    self._custom[StringUtils.normalize_word(word)] = CustomTranslation.from_dict(raw)
                except (KeyError, TypeError, ValueError, AttributeError) as err:
                    logger.warning("Dropping unreadable custom translation '%s': %s", word, err)
        self._incorrect = []
        if isinstance(raw_incorrect, list):
            for raw in raw_incorrect:
                try:
                    self._incorrect.append(IncorrectTranslation.from_dict(raw))
                except (KeyError, TypeError, ValueError, AttributeError) as err:
                    logger.warning("Dropping unreadable incorrect-translation record: %s", err)
        logger.info(
            "Loaded overrides: %d blacklisted, %d custom, %d incorrect",
            len(self._blacklist),
            len(self._custom),
            len(self._incorrect),
        )

    def is_blacklisted(self, word: str) -> bool:
        return StringUtils.normalize_word(word) in self._blacklist

    @property
    def blacklisted_words(self) -> frozenset[str]:
        return frozenset(self._blacklist)

    async def blacklist(self, word: str) -> bool:
        """Add a word to the blacklist.

        Returns:
            bool: True if the word was not blacklisted before.
        """
        key: str = StringUtils.normalize_word(word)
        if not key or key in self._blacklist:
            return False
        self._blacklist.add(key)
        await self._store.save(WORD_BLACKLIST_KEY, sorted(self._blacklist))
        logger.info("Word blacklisted: '%s'", key)
        return True

    async def merge_blacklist(self, words: Iterable[str]) -> int:
        """Union imported blacklist words into the blacklist."""
        before: int = len(self._blacklist)
        self._blacklist.update(key for key in (StringUtils.normalize_word(word) for word in words) if key)
        added: int = len(self._blacklist) - before
        if added:
            await self._store.save(WORD_BLACKLIST_KEY, sorted(self._blacklist))
        return added

    def get_custom(self, word: str, target_language: str) -> str | None:
        """Return the user's translation of a word for the given target language, if any."""
        custom: CustomTranslation | None = self._custom.get(StringUtils.normalize_word(word))
        if custom is None or custom.target_language != target_language:
            return None
        return custom.translation

    async def set_custom(self, word: str, translation: str, target_language: str) -> CustomTranslation:
        custom = CustomTranslation(
            translation=translation.strip(),
            target_language=target_language,
            created_at=self._clock(),
        )
        self._custom[StringUtils.normalize_word(word)] = custom
        await self._store.save(
            CUSTOM_TRANSLATIONS_KEY, {key: value.to_dict() for key, value in self._custom.items()}
        )
        return custom

    async def log_incorrect(self, word: str, translation: str, target_language: str) -> IncorrectTranslation:
        """Append a flagged translation to the diagnostic log."""
        record = IncorrectTranslation(
            word=StringUtils.normalize_word(word),
            incorrect_translation=translation,
            timestamp=self._clock(),
            target_language=target_language,
        )
        self._incorrect.append(record)
        await self._store.save(INCORRECT_TRANSLATIONS_KEY, [item.to_dict() for item in self._incorrect])
        return record

    @property
    def incorrect_translations(self) -> list[IncorrectTranslation]:
        return list(self._incorrect)

    def reset(self) -> None:
        """Forget every override in memory (the caller removes the persisted documents)."""
        self._blacklist.clear()
        self._custom.clear()
        self._incorrect.clear()
