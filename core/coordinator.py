# ruff: noqa: BLE001
"""Request coordinator of the background service.

The coordinator owns every tab queue. Word batches are partitioned against the user's
overrides and the translation cache; only the remainder reaches the translation provider.
Results are written through to the cache and vocabulary and pushed to the originating tab
one word at a time, followed by a progress event per chunk.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Final

from marshmallow import ValidationError

from core.storage import (
    CACHE_KEY,
    IDENTITY_KEY,
    LEARNED_WORDS_KEY,
    STATE_KEYS,
    VOCABULARY_KEY,
    WORD_BLACKLIST_KEY,
)
from core.settings import SettingsValidationError
from core.tab_queue import TabQueue, TabState
from models.cache_models import CacheEntry
from models.message_models import ProgressUpdate, TranslationReady
from models.request_models import (
    BlacklistWord,
    ClearAllData,
    ClearCache,
    ExportAllData,
    GetDiagnostics,
    GetStats,
    ImportData,
    MarkIncorrect,
    MarkLearned,
    ProcessWords,
    Response,
    SetCustomTranslation,
    ShouldTranslate,
    TabClosed,
    UpdateSettings,
)
from models.settings_models import Diagnostics, UsageStats
from models.vocabulary_models import VocabularyEntry
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from core.cache.manager import TranslationCacheManager
    from core.identity import InstallationIdentityManager
    from core.messenger import TabMessenger
    from core.overrides import OverrideStore
    from core.settings import SettingsManager
    from core.storage import StateStore
    from core.tab_queue import PendingWord
    from core.trans.interface import Result
    from core.trans.manager import TransManager
    from core.vocabulary import VocabularyTracker
    from models.config_models import Config
    from models.message_models import WordCandidate
    from models.request_models import Request


__all__: list[str] = ["Coordinator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PROGRESS_MESSAGE: Final[str] = "Translating words..."
READY_MESSAGE: Final[str] = "Ready"
FEEDBACK_INCORRECT: Final[str] = "incorrect"
FEEDBACK_CUSTOM: Final[str] = "custom"


class Coordinator:
    """Orchestrates cache, vocabulary, overrides and the translation provider for every tab.

    Attributes:
        chunk_size (int): Maximum words taken from a tab queue per chunk.
        source_language (str): Source language sent to the provider and used in cache keys.
    """

    def __init__(
        self,
        config: Config,
        *,
        store: StateStore,
        cache: TranslationCacheManager,
        vocabulary: VocabularyTracker,
        overrides: OverrideStore,
        settings: SettingsManager,
        identity: InstallationIdentityManager,
        trans_manager: TransManager,
        messenger: TabMessenger,
    ) -> None:
        self.chunk_size: int = max(1, config.QUEUE.CHUNK_SIZE)
        self.source_language: str = config.TRANSLATION.SOURCE_LANGUAGE
        self.store: StateStore = store
        self.cache: TranslationCacheManager = cache
        self.vocabulary: VocabularyTracker = vocabulary
        self.overrides: OverrideStore = overrides
        self.settings: SettingsManager = settings
        self.identity: InstallationIdentityManager = identity
        self.trans_manager: TransManager = trans_manager
        self.messenger: TabMessenger = messenger

        self._tabs: dict[int, TabQueue] = {}
        self._active_loops: dict[int, int] = {}
        self._peak_active_loops: dict[int, int] = {}
        self._handlers: dict[type, Callable[[Any], Awaitable[Response]]] = {
            ProcessWords: self._on_process_words,
            MarkLearned: self._on_mark_learned,
            BlacklistWord: self._on_blacklist_word,
            SetCustomTranslation: self._on_set_custom_translation,
            MarkIncorrect: self._on_mark_incorrect,
            UpdateSettings: self._on_update_settings,
            GetStats: self._on_get_stats,
            GetDiagnostics: self._on_get_diagnostics,
            ClearCache: self._on_clear_cache,
            ExportAllData: self._on_export_all_data,
            ImportData: self._on_import_data,
            ClearAllData: self._on_clear_all_data,
            TabClosed: self._on_tab_closed,
            ShouldTranslate: self._on_should_translate,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle(self, request: Request) -> Response:
        """Dispatch a request to its handler.

        Handlers never raise to the caller; failures come back as ``Response(success=False)``.

        Args:
            request (Request): Any accepted request variant.

        Returns:
            Response: The handler's response.
        """
        handler: Callable[[Any], Awaitable[Response]] | None = self._handlers.get(type(request))
        if handler is None:
            logger.error("Unknown request type: %s", type(request).__name__)
            return Response(success=False, error=f"Unknown request: {type(request).__name__}")
        try:
            return await handler(request)
        except asyncio.CancelledError:
            raise
        except Exception as err:
            logger.exception("Error handling %s", type(request).__name__)
            return Response(success=False, error=str(err))

    async def _on_process_words(self, request: ProcessWords) -> Response:
        queued: int = self.process_words(request.tab_id, request.words, request.target_language)
        return Response(data={"queued": queued})

    async def _on_mark_learned(self, request: MarkLearned) -> Response:
        return Response(data=await self.mark_learned(request.word))

    async def _on_blacklist_word(self, request: BlacklistWord) -> Response:
        return Response(data=await self.blacklist(request.word))

    async def _on_set_custom_translation(self, request: SetCustomTranslation) -> Response:
        if not request.word.strip() or not request.translation.strip():
            return Response(success=False, error="Word and translation must not be empty")
        await self.set_custom_translation(request.word, request.translation, request.target_language)
        return Response(data=True)

    async def _on_mark_incorrect(self, request: MarkIncorrect) -> Response:
        await self.mark_incorrect(request.word, request.translation, request.target_language)
        return Response(data=True)

    async def _on_update_settings(self, request: UpdateSettings) -> Response:
        try:
            settings = await self.settings.update(request.partial)
        except SettingsValidationError as err:
            return Response(success=False, error=str(err))
        return Response(data=settings.to_dict())

    async def _on_get_stats(self, request: GetStats) -> Response:
        _ = request
        return Response(data=self.get_stats().to_dict())

    async def _on_get_diagnostics(self, request: GetDiagnostics) -> Response:
        _ = request
        return Response(data=(await self.get_diagnostics()).to_dict())

    async def _on_clear_cache(self, request: ClearCache) -> Response:
        _ = request
        if not await self.cache.clear():
            return Response(success=False, error="Error clearing cache")
        return Response(data=True)

    async def _on_export_all_data(self, request: ExportAllData) -> Response:
        _ = request
        return Response(data=await self.export_all_data())

    async def _on_import_data(self, request: ImportData) -> Response:
        if not isinstance(request.snapshot, dict):
            return Response(success=False, error="Import data must be an object")
        return Response(data=await self.import_data(request.snapshot))

    async def _on_clear_all_data(self, request: ClearAllData) -> Response:
        _ = request
        if not await self.clear_all_data():
            return Response(success=False, error="Error clearing data")
        return Response(data=True)

    async def _on_tab_closed(self, request: TabClosed) -> Response:
        return Response(data=self.tab_closed(request.tab_id))

    async def _on_should_translate(self, request: ShouldTranslate) -> Response:
        return Response(data=self.should_translate(request.word))

    # ------------------------------------------------------------------
    # Tab queues
    # ------------------------------------------------------------------

    def get_queue(self, tab_id: int) -> TabQueue | None:
        return self._tabs.get(tab_id)

    def peak_active_loops(self, tab_id: int) -> int:
        """Highest number of processing loops that ever ran at the same time for a tab."""
        return self._peak_active_loops.get(tab_id, 0)

    def process_words(self, tab_id: int, words: list[WordCandidate], target_language: str | None = None) -> int:
        """Queue words for a tab and start its processing loop if the tab is idle.

        Args:
            tab_id (int): Originating tab.
            words (list[WordCandidate]): Candidates selected by the page agent.
            target_language (str | None): Target language; the settings' language when None.

        Returns:
            int: Number of words queued.
        """
        candidates: list[WordCandidate] = [word for word in words if StringUtils.normalize_word(word.text)]
        if not candidates:
            return 0

        language: str = (target_language or self.settings.current.target_language).strip().lower()
        queue: TabQueue = self._tabs.setdefault(tab_id, TabQueue(tab_id=tab_id))
        queue.enqueue(candidates, language)

        if queue.state is TabState.IDLE:
            queue.state = TabState.PROCESSING
            queue.loop_starts += 1
            queue.task = asyncio.create_task(self._run_queue(queue), name=f"tab-queue-{tab_id}")
            logger.debug("Tab %d: processing started with %d word(s)", tab_id, len(candidates))
        else:
            logger.debug("Tab %d: %d word(s) appended to the running queue", tab_id, len(candidates))
        return len(candidates)

    async def drain(self, tab_id: int) -> None:
        """Wait until the tab has no queued or running work."""
        while (queue := self._tabs.get(tab_id)) is not None and queue.task is not None:
            await asyncio.shield(queue.task)

    async def _run_queue(self, queue: TabQueue) -> None:
        tab_id: int = queue.tab_id
        self._active_loops[tab_id] = self._active_loops.get(tab_id, 0) + 1
        self._peak_active_loops[tab_id] = max(self._peak_active_loops.get(tab_id, 0), self._active_loops[tab_id])
        try:
            while queue.pending:
                chunk: list[PendingWord] = queue.take_chunk(self.chunk_size)
                try:
                    await self._process_chunk(tab_id, chunk)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Tab %d: chunk processing failed", tab_id)
                queue.processed += len(chunk)
                await self._send_progress(queue, PROGRESS_MESSAGE)
        finally:
            self._active_loops[tab_id] -= 1
            queue.state = TabState.IDLE
            queue.task = None
            if self._tabs.get(tab_id) is queue:
                del self._tabs[tab_id]

        await self._send_progress(queue, READY_MESSAGE)
        logger.debug("Tab %d: queue drained (%d/%d)", tab_id, queue.processed, queue.total)

    async def _process_chunk(self, tab_id: int, chunk: list[PendingWord]) -> None:
        by_language: dict[str, list[WordCandidate]] = {}
        for item in chunk:
            by_language.setdefault(item.target_language, []).append(item.candidate)
        for target_language, candidates in by_language.items():
            await self._process_language_group(tab_id, candidates, target_language)

    async def _process_language_group(self, tab_id: int, candidates: list[WordCandidate], target_language: str) -> None:
        """Partition candidates and translate the cache misses.

        Blacklisted and learned words are skipped, custom translations and live cache entries are
        emitted at once. The remaining words are sent to the provider once per distinct word.
        """
        src_lang: str = self.source_language
        needs_translation: dict[str, list[WordCandidate]] = {}

        for candidate in candidates:
            word: str = candidate.text
            if not self.should_translate(word):
                continue

            custom: str | None = self.overrides.get_custom(word, target_language)
            if custom is not None:
                await self._emit_translation(tab_id, candidate, custom)
                continue

            entry: CacheEntry | None = await self.cache.get(word, src_lang, target_language)
            if entry is not None:
                if entry.is_useful:
                    await self._emit_translation(tab_id, candidate, entry.translation)
                    await self.vocabulary.add_word(word, entry.translation)
                continue

            needs_translation.setdefault(StringUtils.normalize_word(word), []).append(candidate)

        if not needs_translation:
            return

        words: list[str] = [group[0].text for group in needs_translation.values()]
        results: dict[str, Result] = await self.trans_manager.translate_words(
            words, src_lang, target_language, self.settings.current.difficulty
        )
        logger.debug("Tab %d: %d/%d word(s) translated", tab_id, len(results), len(words))

        for normalized, group in needs_translation.items():
            result: Result | None = results.get(normalized)
            if result is None or not result.text:
                continue
            # Overrides may have changed while the provider call was pending.
            if not self.should_translate(normalized):
                continue
            entry = await self.cache.set(
                group[0].text,
                src_lang,
                target_language,
                result.text,
                detected_source_lang=result.detected_source_lang,
            )
            if not entry.is_useful:
                continue
            await self.vocabulary.add_word(group[0].text, result.text)
            for candidate in group:
                await self._emit_translation(tab_id, candidate, result.text)

    async def _emit_translation(self, tab_id: int, candidate: WordCandidate, translation: str) -> None:
        message = TranslationReady(original_text=candidate.text, translation=translation, index=candidate.index)
        await self.messenger.send(tab_id, message.to_dict())

    async def _send_progress(self, queue: TabQueue, message: str) -> None:
        update = ProgressUpdate(
            message=message,
            current=queue.processed,
            total=queue.total,
            percentage=queue.percentage,
            tab_id=queue.tab_id,
        )
        await self.messenger.send(queue.tab_id, update.to_dict())

    def tab_closed(self, tab_id: int) -> int:
        """Drop the words a closed tab still had queued.

        A chunk already being translated completes and is cached; its delivery fails quietly.

        Returns:
            int: Number of dropped words.
        """
        queue: TabQueue | None = self._tabs.get(tab_id)
        if queue is None:
            return 0
        dropped: int = self._drop_pending(queue)
        if dropped:
            logger.debug("Tab %d closed, dropped %d pending word(s)", tab_id, dropped)
        return dropped

    @staticmethod
    def _drop_pending(queue: TabQueue) -> int:
        dropped: int = queue.drop_pending()
        queue.total -= dropped
        return dropped

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def should_translate(self, word: str) -> bool:
        """Return False for empty, blacklisted or learned words."""
        if not StringUtils.normalize_word(word):
            return False
        return not (self.overrides.is_blacklisted(word) or self.vocabulary.is_learned(word))

    async def mark_learned(self, word: str) -> bool:
        return await self.vocabulary.mark_learned(word)

    async def blacklist(self, word: str) -> int:
        """Blacklist a word and purge it from the cache in every language combination.

        Returns:
            int: Number of cache entries removed.
        """
        await self.overrides.blacklist(word)
        removed: int = await self.cache.remove_word(word)
        await self.cache.flush()
        return removed

    async def set_custom_translation(self, word: str, translation: str, target_language: str | None = None) -> None:
        """Store a user translation that overrides provider and cache results."""
        language: str = target_language or self.settings.current.target_language
        previous: CacheEntry | None = await self.cache.get(word, self.source_language, language)
        await self.cache.remove_word(word)
        await self.overrides.set_custom(word, translation, language)
        await self.cache.set(word, self.source_language, language, translation.strip(), custom=True)
        await self.cache.flush()
        await self.trans_manager.submit_feedback(
            StringUtils.normalize_word(word),
            previous.translation if previous else "",
            FEEDBACK_CUSTOM,
            translation.strip(),
        )

    async def mark_incorrect(self, word: str, translation: str, target_language: str | None = None) -> None:
        """Purge the word from the cache and log the flagged translation."""
        language: str = target_language or self.settings.current.target_language
        await self.cache.remove_word(word)
        await self.cache.flush()
        await self.overrides.log_incorrect(word, translation, language)
        await self.trans_manager.submit_feedback(StringUtils.normalize_word(word), translation, FEEDBACK_INCORRECT)

    def get_stats(self) -> UsageStats:
        vocabulary = self.vocabulary.stats()
        settings = self.settings.current
        return UsageStats(
            vocabulary_size=vocabulary.vocabulary_size,
            learned_words_count=vocabulary.learned_count,
            cache_size=self.cache.size,
            target_language=settings.target_language,
            difficulty=settings.difficulty,
            replacement_percentage=settings.replacement_percentage,
            install_date=self.identity.install_date,
            provider_error=self.trans_manager.provider_error,
        )

    async def get_diagnostics(self) -> Diagnostics:
        """Check the provider and summarize the cache."""
        return Diagnostics(
            provider=self.trans_manager.provider.engine_name,
            server_available=await self.trans_manager.is_server_available(),
            provider_error=self.trans_manager.provider_error,
            supported_languages=await self.trans_manager.supported_languages(),
            cache=self.cache.get_cache_statistics(),
        )

    async def export_all_data(self) -> dict[str, Any]:
        """Return every persisted document except the installation identity."""
        await self.cache.flush()
        snapshot: dict[str, Any] = await self.store.load_all()
        snapshot.pop(IDENTITY_KEY, None)
        # The in-memory cache is authoritative even if the last write-back failed.
        snapshot[CACHE_KEY] = self.cache.to_document()
        return snapshot

    async def import_data(self, snapshot: dict[str, Any]) -> dict[str, int]:
        """Merge an exported snapshot into the current state.

        Vocabulary and cache entries are replaced only by newer ones; learned words and the
        blacklist are set unions. Cache entries of blacklisted words are dropped. Invalid entries
        are skipped.

        Returns:
            dict[str, int]: Number of changed items per document.
        """
        cache_entries: list[CacheEntry] = []
        raw_cache: Any = snapshot.get(CACHE_KEY, {})
        if isinstance(raw_cache, dict):
            for key, raw in raw_cache.items():
                try:
                    cache_entries.append(CacheEntry.schema().load(raw))
                except (ValidationError, TypeError, ValueError) as err:
                    logger.warning("Skipping invalid imported cache entry '%s': %s", key, err)

        vocabulary: dict[str, VocabularyEntry] = {}
        raw_vocabulary: Any = snapshot.get(VOCABULARY_KEY, {})
        if isinstance(raw_vocabulary, dict):
            for word, raw in raw_vocabulary.items():
                try:
                    vocabulary[word] = VocabularyEntry.schema().load(raw)
                except (ValidationError, TypeError, ValueError) as err:
                    logger.warning("Skipping invalid imported vocabulary entry '%s': %s", word, err)

        learned: list[str] = self._string_list(snapshot.get(LEARNED_WORDS_KEY, []))
        blacklist: list[str] = self._string_list(snapshot.get(WORD_BLACKLIST_KEY, []))

        blacklisted: int = await self.overrides.merge_blacklist(blacklist)
        for word in blacklist:
            await self.cache.remove_word(word)
        counts: dict[str, int] = {
            CACHE_KEY: await self.cache.merge(
                entry for entry in cache_entries if not self.overrides.is_blacklisted(entry.word)
            ),
            VOCABULARY_KEY: await self.vocabulary.merge(vocabulary, learned),
            WORD_BLACKLIST_KEY: blacklisted,
        }
        await self.cache.flush()
        logger.info("Import completed: %s", counts)
        return counts

    @staticmethod
    def _string_list(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    async def clear_all_data(self) -> bool:
        """Remove all user data but keep the installation identity."""
        for queue in self._tabs.values():
            self._drop_pending(queue)
        await self.cache.clear()
        await self.vocabulary.clear()
        self.overrides.reset()
        self.settings.reset()
        ok: bool = await self.store.remove(key for key in STATE_KEYS if key != IDENTITY_KEY)
        logger.info("All user data cleared")
        return ok
