"""Translation cache manager.

Keeps translation results in memory keyed by (normalized word, source language, target
language), enforces the time-to-live on every lookup, and writes the whole cache back to the
state store in batches. A lost batch only costs a redundant provider call later, never a wrong
translation, so write-back frequency is a tunable rather than a correctness requirement.
"""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any, ClassVar

from core.storage import CACHE_KEY
from models.cache_models import CacheEntry, CacheStatistics, build_cache_key
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from core.storage import StateStore

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationCacheManager:
    """In-memory translation cache persisted through the state store.

    Attributes:
        DEFAULT_TTL_SECONDS (ClassVar[float]): Entry lifetime when none is configured (1 day).
        DEFAULT_PERSIST_EVERY (ClassVar[int]): Mutations batched per write-back.
    """

    DEFAULT_TTL_SECONDS: ClassVar[float] = 24 * 60 * 60
    DEFAULT_PERSIST_EVERY: ClassVar[int] = 10

    def __init__(
        self,
        store: StateStore,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        persist_every: int = DEFAULT_PERSIST_EVERY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache manager.

        Args:
            store (StateStore): Persistence backend.
            ttl_seconds (float): Entry lifetime in seconds.
            persist_every (int): Number of mutations batched per write-back (1 = write-through).
            clock (Callable[[], float]): Wall-clock time source in epoch seconds.
        """
        self._store: StateStore = store
        self.ttl_seconds: float = ttl_seconds
        self.persist_every: int = max(1, persist_every)
        self._clock: Callable[[], float] = clock
        self._entries: dict[str, CacheEntry] = {}
        self._pending_mutations: int = 0
        self._is_initialized: bool = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def pending_mutations(self) -> int:
        """Mutations not yet written back to the store."""
        return self._pending_mutations

    async def component_load(self) -> None:
        """Eagerly load the persisted cache; unreadable entries are dropped."""
        document: Any = await self._store.load(CACHE_KEY, default={})
        loaded: dict[str, CacheEntry] = {}
        if isinstance(document, dict):
            for key, raw in document.items():
                try:
                    entry: CacheEntry = CacheEntry.from_dict(raw)
                except (KeyError, TypeError, ValueError, AttributeError) as err:
                    logger.warning("Dropping unreadable cache entry '%s': %s", key, err)
                    continue
                loaded[entry.key] = entry
        self._entries = loaded
        self._pending_mutations = 0
        self._is_initialized = True
        logger.info("Loaded %d cached translations", len(self._entries))

    async def component_teardown(self) -> None:
        """Write back any pending mutations."""
        await self.flush()
        self._is_initialized = False

    def _generate_cache_key(self, word: str, source_lang: str, target_lang: str) -> str:
        return build_cache_key(StringUtils.normalize_word(word), source_lang, target_lang)

    async def _record_mutation(self, count: int = 1) -> None:
        self._pending_mutations += count
        if self._pending_mutations >= self.persist_every:
            await self.flush()

    async def flush(self) -> bool:
        """Write the full cache to the store if anything changed since the last write.

        Returns:
            bool: True if the cache is persisted (or nothing was pending).
        """
        if self._pending_mutations == 0:
            return True
        if await self._store.save(CACHE_KEY, self.to_document()):
            self._pending_mutations = 0
            return True
        # Pending count is kept, so the next mutation retries the write.
        return False

    async def get(self, word: str, source_lang: str, target_lang: str) -> CacheEntry | None:
        """Look up a translation.

        Expired entries are never returned; they are deleted as a side effect of the lookup.

        Args:
            word (str): Word as seen on the page.
            source_lang (str): Source language code.
            target_lang (str): Target language code.

        Returns:
            CacheEntry | None: The live entry, or None on a miss.
        """
        cache_key: str = self._generate_cache_key(word, source_lang, target_lang)
        entry: CacheEntry | None = self._entries.get(cache_key)
        if entry is None:
            return None

        if entry.is_expired(self._clock(), self.ttl_seconds):
            del self._entries[cache_key]
            logger.debug("Cache entry expired: %s", cache_key)
            await self._record_mutation()
            return None

        return entry

    async def set(
        self,
        word: str,
        source_lang: str,
        target_lang: str,
        translation: str,
        *,
        custom: bool = False,
        detected_source_lang: str | None = None,
    ) -> CacheEntry:
        """Insert or replace a translation, stamping the current time.

        Self-identical translations are stored as well; ``CacheEntry.is_useful`` filters them
        out when results are displayed.

        Returns:
            CacheEntry: The stored entry.
        """
        entry = CacheEntry(
            word=StringUtils.normalize_word(word),
            source_lang=source_lang,
            target_lang=target_lang,
            translation=translation,
            created_at=self._clock(),
            custom=custom,
            detected_source_lang=detected_source_lang,
        )
        self._entries[entry.key] = entry
        logger.debug("Translation cached: %s", entry.key)
        await self._record_mutation()
        return entry

    async def remove_word(self, word: str) -> int:
        """Remove the word from every language combination.

        Returns:
            int: Number of entries removed.
        """
        normalized: str = StringUtils.normalize_word(word)
        keys: list[str] = [key for key, entry in self._entries.items() if entry.word == normalized]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Purged %d cache entr(ies) for '%s'", len(keys), normalized)
            await self._record_mutation(len(keys))
        return len(keys)

    async def sweep_expired(self) -> int:
        """Remove every entry older than the TTL.

        Returns:
            int: Number of entries removed.
        """
        now: float = self._clock()
        expired: list[str] = [key for key, entry in self._entries.items() if entry.is_expired(now, self.ttl_seconds)]
        for key in expired:
            del self._entries[key]
        logger.info("Deleted %d expired translation cache entries", len(expired))
        if expired:
            # A sweep is a bulk change; persist it right away.
            self._pending_mutations += len(expired)
            await self.flush()
        return len(expired)

    async def clear(self) -> bool:
        """Remove every entry and persist the empty cache.

        Returns:
            bool: True if the empty cache was persisted.
        """
        removed: int = len(self._entries)
        self._entries.clear()
        self._pending_mutations += max(removed, 1)
        logger.info("Translation cache cleared (%d entries)", removed)
        return await self.flush()

    async def merge(self, entries: Iterable[CacheEntry]) -> int:
        """Merge imported entries; an entry replaces an existing one only if it is newer.

        Returns:
            int: Number of entries inserted or replaced.
        """
        changed: int = 0
        for entry in entries:
            current: CacheEntry | None = self._entries.get(entry.key)
            if current is None or entry.created_at > current.created_at:
                self._entries[entry.key] = entry
                changed += 1
        if changed:
            self._pending_mutations += changed
            await self.flush()
        return changed

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def to_document(self) -> dict[str, dict[str, Any]]:
        """Return the flat ``composite key -> entry`` mapping that is persisted."""
        return {key: entry.to_dict() for key, entry in self._entries.items()}

    def get_cache_statistics(self) -> CacheStatistics:
        """Summarize the cache for diagnostics."""
        if not self._entries:
            return CacheStatistics()
        created: list[float] = [entry.created_at for entry in self._entries.values()]
        return CacheStatistics(
            total_entries=len(self._entries),
            custom_entries=sum(1 for entry in self._entries.values() if entry.custom),
            non_useful_entries=sum(1 for entry in self._entries.values() if not entry.is_useful),
            estimated_size=len(json.dumps(self.to_document(), ensure_ascii=False)),
            oldest_entry=min(created),
            newest_entry=max(created),
        )
