"""Unit tests for core.trans.manager module."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar
from unittest.mock import MagicMock

import pytest

from core.cache.inflight_manager import InFlightManager
from core.trans.interface import EngineAttributes, Result, TransInterface, TranslateExceptionError
from core.trans.manager import TransManager
from models.config_models import Config

if TYPE_CHECKING:
    from core.identity import InstallationIdentityManager
    from core.rate_limiter import SlidingWindowRateLimiter
    from handlers.async_comm import AsyncHttp


class DummyEngine(TransInterface):
    """Minimal translation provider for TransManager tests."""

    translations: ClassVar[dict[str, str]] = {"house": "maison", "garden": "jardin"}
    batches: ClassVar[list[list[str]]] = []
    feedback: ClassVar[list[tuple[str, str, str, str | None]]] = []
    gate: ClassVar[asyncio.Event | None] = None
    error: ClassVar[Exception | None] = None
    feedback_supported: ClassVar[bool] = True

    @property
    def is_available(self) -> bool:
        return True

    @staticmethod
    def fetch_engine_name() -> str:
        return "manager-dummy"

    def initialize(
        self,
        config: Config,
        *,
        http: AsyncHttp,
        rate_limiter: SlidingWindowRateLimiter,
        identity: InstallationIdentityManager,
    ) -> None:
        _ = config, http, rate_limiter, identity
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(), supports_feedback=type(self).feedback_supported
        )

    async def translate_batch(
        self, words: list[str], src_lang: str, tgt_lang: str, difficulty: str
    ) -> dict[str, Result]:
        _ = src_lang, tgt_lang, difficulty
        type(self).batches.append(list(words))
        gate: asyncio.Event | None = type(self).gate
        if gate is not None:
            await gate.wait()
        if type(self).error is not None:
            raise type(self).error
        return {
            word: Result(text=type(self).translations[word.lower()])
            for word in words
            if word.lower() in type(self).translations
        }

    async def submit_feedback(
        self, original_word: str, translated_word: str, feedback_type: str, custom_translation: str | None = None
    ) -> bool:
        type(self).feedback.append((original_word, translated_word, feedback_type, custom_translation))
        return True

    async def close(self) -> None:
        return None


@pytest.fixture(autouse=True)
def reset_dummy_engine() -> None:
    DummyEngine.batches = []
    DummyEngine.feedback = []
    DummyEngine.gate = None
    DummyEngine.error = None
    DummyEngine.feedback_supported = True


@pytest.fixture
def inflight_manager() -> InFlightManager:
    return InFlightManager(timeout=1.0)


@pytest.fixture
def trans_manager(inflight_manager: InFlightManager) -> TransManager:
    config = Config()
    config.TRANSLATION.PROVIDER = "manager-dummy"
    manager = TransManager(config, inflight_manager)
    manager.initialize(http=MagicMock(), rate_limiter=MagicMock(), identity=MagicMock())
    return manager


def test_unknown_provider_raises() -> None:
    config = Config()
    config.TRANSLATION.PROVIDER = "no-such-provider"
    manager = TransManager(config, InFlightManager())

    with pytest.raises(TranslateExceptionError, match="no-such-provider"):
        manager.initialize(http=MagicMock(), rate_limiter=MagicMock(), identity=MagicMock())


def test_provider_before_initialize_raises() -> None:
    manager = TransManager(Config(), InFlightManager())

    with pytest.raises(TranslateExceptionError):
        _ = manager.provider
    assert manager.provider_error is None


@pytest.mark.asyncio
async def test_translate_words_keys_by_normalized_word(trans_manager: TransManager) -> None:
    results = await trans_manager.translate_words(["House", "house", "sky"], "auto", "fr", "beginner")

    assert DummyEngine.batches == [["House", "sky"]]
    assert list(results) == ["house"]
    assert results["house"].text == "maison"


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_request(
    trans_manager: TransManager, inflight_manager: InFlightManager
) -> None:
    """Two tabs asking for the same word at the same time cause a single provider call."""
    DummyEngine.gate = asyncio.Event()

    first = asyncio.create_task(trans_manager.translate_words(["house"], "auto", "fr", "beginner"))
    await asyncio.sleep(0)
    second = asyncio.create_task(trans_manager.translate_words(["house", "garden"], "auto", "fr", "beginner"))
    await asyncio.sleep(0)
    DummyEngine.gate.set()

    first_result, second_result = await asyncio.gather(first, second)

    assert DummyEngine.batches == [["house"], ["garden"]]
    assert first_result["house"].text == "maison"
    assert second_result["house"].text == "maison"
    assert second_result["garden"].text == "jardin"
    assert inflight_manager.pending_count == 0


@pytest.mark.asyncio
async def test_provider_error_releases_claims(trans_manager: TransManager, inflight_manager: InFlightManager) -> None:
    DummyEngine.error = TranslateExceptionError("boom")

    assert await trans_manager.translate_words(["house"], "auto", "fr", "beginner") == {}
    assert inflight_manager.pending_count == 0


@pytest.mark.asyncio
async def test_feedback_forwarded_when_supported(trans_manager: TransManager) -> None:
    assert await trans_manager.submit_feedback("house", "maison", "custom", "la maison")
    assert DummyEngine.feedback == [("house", "maison", "custom", "la maison")]


@pytest.mark.asyncio
async def test_feedback_skipped_when_unsupported(inflight_manager: InFlightManager) -> None:
    DummyEngine.feedback_supported = False
    config = Config()
    config.TRANSLATION.PROVIDER = "manager-dummy"
    manager = TransManager(config, inflight_manager)
    manager.initialize(http=MagicMock(), rate_limiter=MagicMock(), identity=MagicMock())

    assert not await manager.submit_feedback("house", "maison", "incorrect")
    assert DummyEngine.feedback == []


@pytest.mark.asyncio
async def test_waiter_on_untranslated_word_gets_nothing(
    trans_manager: TransManager, inflight_manager: InFlightManager
) -> None:
    DummyEngine.gate = asyncio.Event()
    first = asyncio.create_task(trans_manager.translate_words(["house", "window"], "auto", "fr", "beginner"))
    await asyncio.sleep(0)
    second = asyncio.create_task(trans_manager.translate_words(["window"], "auto", "fr", "beginner"))
    await asyncio.sleep(0)
    DummyEngine.gate.set()

    first_result, second_result = await asyncio.gather(first, second)

    assert list(first_result) == ["house"]
    assert second_result == {}
    assert DummyEngine.batches == [["house", "window"]]
    assert inflight_manager.pending_count == 0


@pytest.mark.asyncio
async def test_provider_status_is_forwarded(trans_manager: TransManager) -> None:
    assert await trans_manager.is_server_available()
    assert await trans_manager.supported_languages() == []
