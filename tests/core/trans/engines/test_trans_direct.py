"""Tests for the direct translation provider."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from core.trans.engines.trans_direct import DirectTranslation
from handlers.async_comm import AsyncCommError, AsyncHttp
from models.config_models import Config
from models.translation_models import SupportedLanguage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def _comm_error(status: int) -> AsyncCommError:
    response_error = aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=status)
    return AsyncCommError("Error response from the server.", response=response_error)


def _response(text: str, detected: str = "EN") -> dict[str, Any]:
    return {"translations": [{"detected_source_language": detected, "text": text}]}


@pytest.fixture
def http() -> MagicMock:
    client = MagicMock()
    client.post = AsyncMock(return_value=_response("maison"))
    client.get = AsyncMock()
    return client


@pytest.fixture
def rate_limiter() -> MagicMock:
    limiter = MagicMock()
    limiter.acquire = AsyncMock(return_value=0.0)
    return limiter


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch, http: MagicMock, rate_limiter: MagicMock) -> DirectTranslation:
    monkeypatch.setenv("DIRECT_API_OAUTH", "secret")
    direct = DirectTranslation()
    direct.initialize(Config(), http=http, rate_limiter=rate_limiter, identity=MagicMock())
    return direct


def test_registered_under_its_name() -> None:
    assert DirectTranslation.fetch_engine_name() == "direct"
    assert DirectTranslation.registered["direct"] is DirectTranslation


@pytest.mark.asyncio
async def test_translate_batch_success(engine: DirectTranslation, http: MagicMock, rate_limiter: MagicMock) -> None:
    results = await engine.translate_batch(["House"], "auto", "fr", "beginner")

    assert list(results) == ["House"]
    assert results["House"].text == "maison"
    assert results["House"].detected_source_lang == "en"
    rate_limiter.acquire.assert_awaited_once()
    kwargs = http.post.await_args.kwargs
    assert kwargs["url"] == f"{Config().DIRECT.API_URL}/translate"
    assert kwargs["form"] == {"text": "House", "target_lang": "FR", "auth_key": "secret"}
    assert engine.configuration_error is None


@pytest.mark.asyncio
async def test_explicit_source_language_is_sent(engine: DirectTranslation, http: MagicMock) -> None:
    await engine.translate_batch(["house"], "en", "de", "beginner")

    assert http.post.await_args.kwargs["form"]["source_lang"] == "EN"


@pytest.mark.asyncio
async def test_every_word_is_one_rate_limited_request(
    engine: DirectTranslation, http: MagicMock, rate_limiter: MagicMock
) -> None:
    http.post.side_effect = [_response("un"), _response("deux"), _response("trois")]

    results = await engine.translate_batch(["one", "two", "three"], "auto", "fr", "beginner")

    assert len(results) == 3
    assert http.post.await_count == 3
    assert rate_limiter.acquire.await_count == 3


@pytest.mark.asyncio
async def test_missing_key_degrades_to_empty(monkeypatch: pytest.MonkeyPatch, http: MagicMock) -> None:
    monkeypatch.delenv("DIRECT_API_OAUTH", raising=False)
    direct = DirectTranslation()
    direct.initialize(Config(), http=http, rate_limiter=MagicMock(), identity=MagicMock())

    assert await direct.translate_batch(["house"], "auto", "fr", "beginner") == {}
    assert direct.configuration_error is not None
    assert not direct.is_available
    http.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_rejected_key_sets_configuration_error(engine: DirectTranslation, http: MagicMock) -> None:
    http.post.side_effect = _comm_error(403)

    assert await engine.translate_batch(["house"], "auto", "fr", "beginner") == {}
    assert engine.configuration_error is not None
    assert "house" in engine.failed_words


@pytest.mark.asyncio
async def test_failed_word_is_not_requested_again(engine: DirectTranslation, http: MagicMock) -> None:
    http.post.side_effect = _comm_error(500)
    assert await engine.translate_batch(["House"], "auto", "fr", "beginner") == {}

    http.post.side_effect = None
    results = await engine.translate_batch(["house", "garden"], "auto", "fr", "beginner")

    assert list(results) == ["garden"]
    assert http.post.await_count == 2


@pytest.mark.asyncio
async def test_rate_limited_word_is_retried_later(engine: DirectTranslation, http: MagicMock) -> None:
    http.post.side_effect = _comm_error(429)
    assert await engine.translate_batch(["house"], "auto", "fr", "beginner") == {}
    assert engine.failed_words == frozenset()

    http.post.side_effect = None
    assert "house" in await engine.translate_batch(["house"], "auto", "fr", "beginner")


@pytest.mark.asyncio
async def test_quota_exceeded_marks_unavailable(engine: DirectTranslation, http: MagicMock) -> None:
    http.post.side_effect = _comm_error(456)

    assert await engine.translate_batch(["house"], "auto", "fr", "beginner") == {}
    assert not engine.is_available
    assert engine.failed_words == frozenset()


@pytest.mark.asyncio
async def test_empty_translation_is_a_failure(engine: DirectTranslation, http: MagicMock) -> None:
    http.post.return_value = {"translations": []}

    assert await engine.translate_batch(["house"], "auto", "fr", "beginner") == {}
    assert "house" in engine.failed_words


@pytest.mark.asyncio
async def test_supported_languages(engine: DirectTranslation, http: MagicMock) -> None:
    http.get.return_value = [{"language": "DE", "name": "German"}, {"language": "FR", "name": "French"}]

    languages = await engine.supported_languages()

    assert languages == [SupportedLanguage("de", "German"), SupportedLanguage("fr", "French")]
    assert http.get.await_args.kwargs["params"] == {"auth_key": "secret"}


@pytest.mark.asyncio
async def test_supported_languages_fallback(engine: DirectTranslation, http: MagicMock) -> None:
    http.get.side_effect = _comm_error(500)

    assert await engine.supported_languages() == list(DirectTranslation.DEFAULT_LANGUAGES)


class WordSession:
    """aiohttp session stand-in answering ``/translate`` with a canned body per word."""

    def __init__(self, bodies: dict[str, bytes]) -> None:
        self.bodies: dict[str, bytes] = bodies
        self.closed: bool = False

    @asynccontextmanager
    async def request(self, **kwargs: Any) -> AsyncIterator[MagicMock]:
        resp = MagicMock()
        resp.headers = {"Content-Type": "application/json"}
        resp.raise_for_status = MagicMock()
        resp.read = AsyncMock(return_value=self.bodies[kwargs["data"]["text"]])
        yield resp


@pytest.mark.asyncio
async def test_malformed_body_fails_only_its_word(monkeypatch: pytest.MonkeyPatch, rate_limiter: MagicMock) -> None:
    monkeypatch.setenv("DIRECT_API_OAUTH", "secret")
    http = AsyncHttp()
    http._AsyncHttp__session = WordSession(  # type: ignore[attr-defined]  # noqa: SLF001
        {"house": json.dumps(_response("maison")).encode(), "tree": b"<html>busy</html>"}
    )
    direct = DirectTranslation()
    direct.initialize(Config(), http=http, rate_limiter=rate_limiter, identity=MagicMock())

    results = await direct.translate_batch(["house", "tree"], "auto", "fr", "beginner")

    assert list(results) == ["house"]
    assert results["house"].text == "maison"
    assert "tree" in direct.failed_words
