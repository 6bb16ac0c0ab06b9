"""Vocabulary tracking.

Records every word surfaced to the user together with its translation and encounter
history, plus the set of words the user marked as already known. Both structures are
user-facing, so every mutation is persisted immediately.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from core.storage import LEARNED_WORDS_KEY, VOCABULARY_KEY
from models.vocabulary_models import VocabularyEntry, VocabularyStats
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable, Mapping

    from core.storage import StateStore

__all__: list[str] = ["VocabularyTracker"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class VocabularyTracker:
    """Vocabulary and learned-word bookkeeping keyed by lowercase word."""

    def __init__(self, store: StateStore, *, clock: Callable[[], float] = time.time) -> None:
        self._store: StateStore = store
        self._clock: Callable[[], float] = clock
        self._vocabulary: dict[str, VocabularyEntry] = {}
        self._learned: set[str] = set()

    async def component_load(self) -> None:
        """Load vocabulary and learned words from the store."""
        raw_vocabulary: Any = await self._store.load(VOCABULARY_KEY, default={})
        raw_learned: Any = await self._store.load(LEARNED_WORDS_KEY, default=[])

        self._vocabulary = {}
        if isinstance(raw_vocabulary, dict):
            for word, raw in raw_vocabulary.items():
                try:
                    self._vocabulary[StringUtils.normalize_word(word)] = VocabularyEntry.from_dict(raw)
                except (KeyError, TypeError, ValueError, AttributeError) as err:
                    logger.warning("Dropping unreadable vocabulary entry '%s': %s", word, err)
        self._learned = (
            {StringUtils.normalize_word(word) for word in raw_learned} if isinstance(raw_learned, list) else set()
        )
        logger.info("Loaded %d vocabulary words, %d learned", len(self._vocabulary), len(self._learned))

    async def _persist(self) -> bool:
        return await self._store.save_many(
            {
                VOCABULARY_KEY: {word: entry.to_dict() for word, entry in self._vocabulary.items()},
                LEARNED_WORDS_KEY: sorted(self._learned),
            }
        )

    async def add_word(self, original: str, translation: str) -> VocabularyEntry:
        """Record that a word was surfaced to the user.

        A new word starts with one encounter; a known word keeps its ``first_seen`` and has
        its encounter count, translation and ``last_seen`` refreshed.

        Args:
            original (str): Word as it appeared on the page.
            translation (str): Translation shown to the user.

        Returns:
            VocabularyEntry: The updated entry.
        """
        key: str = StringUtils.normalize_word(original)
        now: float = self._clock()
        current: VocabularyEntry | None = self._vocabulary.get(key)
        entry = VocabularyEntry(
            original=original.strip(),
            translation=translation,
            encounters=(current.encounters if current else 0) + 1,
            first_seen=current.first_seen if current else now,
            last_seen=now,
        )
        self._vocabulary[key] = entry
        await self._persist()
        return entry

    async def mark_learned(self, word: str) -> bool:
        """Add a word to the learned set.

        Returns:
            bool: True if the word was not learned before.
        """
        key: str = StringUtils.normalize_word(word)
        if not key or key in self._learned:
            return False
        self._learned.add(key)
        await self._persist()
        logger.info("Word marked as learned: '%s'", key)
        return True

    def is_learned(self, word: str) -> bool:
        return StringUtils.normalize_word(word) in self._learned

    def get(self, word: str) -> VocabularyEntry | None:
        return self._vocabulary.get(StringUtils.normalize_word(word))

    def stats(self) -> VocabularyStats:
        return VocabularyStats(vocabulary_size=len(self._vocabulary), learned_count=len(self._learned))

    @property
    def learned_words(self) -> frozenset[str]:
        return frozenset(self._learned)

    async def clear(self) -> bool:
        """Empty both the vocabulary and the learned set."""
        self._vocabulary.clear()
        self._learned.clear()
        logger.info("Vocabulary cleared")
        return await self._persist()

    async def merge(self, vocabulary: Mapping[str, VocabularyEntry], learned: Iterable[str]) -> int:
        """Merge imported data.

        Vocabulary is a union where the entry with the later ``last_seen`` wins; learned words
        are a set union. Importing the same snapshot twice leaves the state unchanged.

        Returns:
            int: Number of vocabulary entries or learned words added or replaced.
        """
        changed: int = 0
        for word, entry in vocabulary.items():
            key: str = StringUtils.normalize_word(word)
            current: VocabularyEntry | None = self._vocabulary.get(key)
            if current is None or entry.last_seen > current.last_seen:
                self._vocabulary[key] = entry
                changed += 1

        for word in learned:
            key = StringUtils.normalize_word(word)
            if key and key not in self._learned:
                self._learned.add(key)
                changed += 1

        if changed:
            await self._persist()
        return changed
