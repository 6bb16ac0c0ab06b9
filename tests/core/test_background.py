"""Tests for BackgroundService."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.background import BackgroundService
from core.messenger import CallbackTabMessenger
from core.storage import IDENTITY_KEY
from core.trans.interface import TranslateExceptionError
from models.config_models import Config
from models.message_models import WordCandidate
from models.request_models import GetStats, ProcessWords

if TYPE_CHECKING:
    from pathlib import Path


def _config(tmp_path: Path) -> Config:
    config = Config()
    config.GENERAL.DB_PATH = str(tmp_path / "state.db")
    return config


def _http() -> MagicMock:
    http = MagicMock()
    http.post = AsyncMock()
    http.get = AsyncMock()
    http.close = AsyncMock()
    return http


@pytest.mark.asyncio
async def test_load_and_teardown(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DIRECT_API_OAUTH", raising=False)
    http = _http()
    service = BackgroundService(_config(tmp_path), http=http)

    await service.component_load()
    try:
        assert service.is_loaded
        assert service.store.is_open
        assert service.identity.installation_id
        assert await service.store.load(IDENTITY_KEY) is not None
    finally:
        await service.component_teardown()

    assert not service.is_loaded
    assert not service.store.is_open
    http.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_unconfigured_provider_degrades_gracefully(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without an API key no word is translated, but the tab still receives its progress events."""
    monkeypatch.delenv("DIRECT_API_OAUTH", raising=False)
    events: list[dict[str, Any]] = []
    messenger = CallbackTabMessenger()
    messenger.register(5, events.append)
    http = _http()
    service = BackgroundService(_config(tmp_path), messenger=messenger, http=http)
    await service.component_load()
    try:
        await service.handle(ProcessWords(tab_id=5, words=[WordCandidate("house")]))
        await service.coordinator.drain(5)
        stats = await service.handle(GetStats())
    finally:
        await service.component_teardown()

    assert [event["action"] for event in events] == ["progressUpdate", "progressUpdate"]
    assert events[-1]["message"] == "Ready"
    assert stats.data["providerError"] is not None
    http.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_provider_fails_to_load(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.TRANSLATION.PROVIDER = "missing-provider"
    service = BackgroundService(config, http=_http())

    with pytest.raises(TranslateExceptionError):
        await service.component_load()
    await service.component_teardown()

    assert not service.store.is_open
