"""Tests for TranslationCacheManager."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.cache.manager import TranslationCacheManager
from core.storage import CACHE_KEY, StateStore
from models.cache_models import CacheEntry

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

HOUR: float = 60 * 60


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now: float = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
async def store(tmp_path: Path) -> AsyncGenerator[StateStore]:
    state_store = StateStore(tmp_path / "state.db")
    await state_store.open()
    yield state_store
    await state_store.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def cache_manager(store: StateStore, clock: FakeClock) -> AsyncGenerator[TranslationCacheManager]:
    """Create a write-through cache manager with a controllable clock."""
    manager = TranslationCacheManager(store, ttl_seconds=24 * HOUR, persist_every=1, clock=clock)
    await manager.component_load()
    yield manager
    await manager.component_teardown()


@pytest.mark.asyncio
async def test_set_and_get(cache_manager: TranslationCacheManager) -> None:
    await cache_manager.set("House", "auto", "fr", "maison")

    entry = await cache_manager.get(" house ", "auto", "fr")

    assert entry is not None
    assert entry.translation == "maison"
    assert entry.key == "house|auto|fr"
    assert await cache_manager.get("house", "auto", "de") is None


@pytest.mark.asyncio
async def test_expired_entry_is_never_returned(cache_manager: TranslationCacheManager, clock: FakeClock) -> None:
    """An entry past its TTL is a miss and is deleted by the lookup."""
    await cache_manager.set("house", "auto", "fr", "maison")

    clock.now += 25 * HOUR

    assert await cache_manager.get("house", "auto", "fr") is None
    assert cache_manager.size == 0


@pytest.mark.asyncio
async def test_sweep_removes_only_expired(cache_manager: TranslationCacheManager, clock: FakeClock) -> None:
    await cache_manager.set("old", "auto", "fr", "vieux")
    clock.now += 20 * HOUR
    await cache_manager.set("new", "auto", "fr", "nouveau")
    clock.now += 5 * HOUR

    removed = await cache_manager.sweep_expired()

    assert removed == 1
    assert await cache_manager.get("new", "auto", "fr") is not None


@pytest.mark.asyncio
async def test_cache_is_persisted_and_reloaded(store: StateStore, clock: FakeClock) -> None:
    writer = TranslationCacheManager(store, persist_every=1, clock=clock)
    await writer.component_load()
    await writer.set("garden", "auto", "de", "Garten")

    reader = TranslationCacheManager(store, clock=clock)
    await reader.component_load()

    entry = await reader.get("garden", "auto", "de")
    assert entry is not None
    assert entry.translation == "Garten"
    stored = await store.load(CACHE_KEY)
    assert "createdAt" in stored["garden|auto|de"]


@pytest.mark.asyncio
async def test_write_back_is_batched(store: StateStore, clock: FakeClock) -> None:
    manager = TranslationCacheManager(store, persist_every=3, clock=clock)
    await manager.component_load()

    await manager.set("one", "auto", "fr", "un")
    await manager.set("two", "auto", "fr", "deux")
    assert manager.pending_mutations == 2
    assert await store.load(CACHE_KEY) is None

    await manager.set("three", "auto", "fr", "trois")
    assert manager.pending_mutations == 0
    assert len(await store.load(CACHE_KEY)) == 3


@pytest.mark.asyncio
async def test_teardown_flushes_pending(store: StateStore, clock: FakeClock) -> None:
    manager = TranslationCacheManager(store, persist_every=100, clock=clock)
    await manager.component_load()
    await manager.set("one", "auto", "fr", "un")

    await manager.component_teardown()

    assert "one|auto|fr" in await store.load(CACHE_KEY)


@pytest.mark.asyncio
async def test_remove_word_across_languages(cache_manager: TranslationCacheManager) -> None:
    await cache_manager.set("house", "auto", "fr", "maison")
    await cache_manager.set("house", "auto", "de", "Haus")
    await cache_manager.set("garden", "auto", "fr", "jardin")

    removed = await cache_manager.remove_word("HOUSE")

    assert removed == 2
    assert await cache_manager.get("house", "auto", "fr") is None
    assert await cache_manager.get("house", "auto", "de") is None
    assert await cache_manager.get("garden", "auto", "fr") is not None


@pytest.mark.asyncio
async def test_self_identical_translation_is_cached_but_not_useful(cache_manager: TranslationCacheManager) -> None:
    entry = await cache_manager.set("Taxi", "auto", "fr", "taxi")

    assert not entry.is_useful
    assert cache_manager.get_cache_statistics().non_useful_entries == 1


def test_decomposed_translation_of_same_word_is_not_useful() -> None:
    entry = CacheEntry(
        word="caf\u00e9", source_lang="auto", target_lang="en", translation="Cafe\u0301 ", created_at=0.0
    )

    assert not entry.is_useful


@pytest.mark.asyncio
async def test_merge_newer_entry_wins(cache_manager: TranslationCacheManager, clock: FakeClock) -> None:
    await cache_manager.set("house", "auto", "fr", "maison")
    older = CacheEntry("house", "auto", "fr", "baraque", created_at=clock.now - 10)
    newer = CacheEntry("garden", "auto", "fr", "jardin", created_at=clock.now)

    changed = await cache_manager.merge([older, newer])

    assert changed == 1
    entry = await cache_manager.get("house", "auto", "fr")
    assert entry is not None
    assert entry.translation == "maison"
    assert await cache_manager.merge([older, newer]) == 0


@pytest.mark.asyncio
async def test_clear_and_statistics(cache_manager: TranslationCacheManager, store: StateStore) -> None:
    await cache_manager.set("house", "auto", "fr", "maison", custom=True)
    await cache_manager.set("garden", "auto", "fr", "jardin")

    stats = cache_manager.get_cache_statistics()
    assert stats.total_entries == 2
    assert stats.custom_entries == 1
    assert stats.estimated_size > 0

    assert await cache_manager.clear()
    assert cache_manager.size == 0
    assert await store.load(CACHE_KEY) == {}


@pytest.mark.asyncio
async def test_unreadable_entries_are_dropped_on_load(store: StateStore, clock: FakeClock) -> None:
    await store.save(
        CACHE_KEY,
        {
            "house|auto|fr": CacheEntry("house", "auto", "fr", "maison", created_at=clock.now).to_dict(),
            "broken|auto|fr": {"word": "broken"},
        },
    )
    manager = TranslationCacheManager(store, clock=clock)

    await manager.component_load()

    assert manager.size == 1
