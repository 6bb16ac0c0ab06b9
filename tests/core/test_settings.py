"""Tests for SettingsManager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from core.settings import SettingsManager, SettingsValidationError
from core.storage import SETTINGS_KEY, StateStore
from models.settings_models import Settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path


@pytest.fixture
async def store(tmp_path: Path) -> AsyncGenerator[StateStore]:
    state_store = StateStore(tmp_path / "state.db")
    await state_store.open()
    yield state_store
    await state_store.close()


@pytest.fixture
async def settings_manager(store: StateStore) -> SettingsManager:
    manager = SettingsManager(store)
    await manager.component_load()
    return manager


@pytest.mark.asyncio
async def test_defaults(settings_manager: SettingsManager) -> None:
    assert settings_manager.current == Settings()


@pytest.mark.asyncio
async def test_update_is_persisted(settings_manager: SettingsManager, store: StateStore) -> None:
    updated = await settings_manager.update({"targetLanguage": " DE ", "replacementPercentage": 25})

    assert updated.target_language == "de"
    assert updated.replacement_percentage == 25
    assert updated.difficulty == "beginner"
    assert await store.load(SETTINGS_KEY) == {
        "enabled": False,
        "targetLanguage": "de",
        "difficulty": "beginner",
        "replacementPercentage": 25,
    }


@pytest.mark.parametrize(
    "partial",
    [
        {"enabled": "yes"},
        {"targetLanguage": ""},
        {"targetLanguage": 3},
        {"difficulty": "expert"},
        {"replacementPercentage": 0},
        {"replacementPercentage": 101},
        {"replacementPercentage": True},
        {"unknownKey": 1},
        ["enabled"],
    ],
)
def test_invalid_updates_rejected(partial: Any) -> None:
    with pytest.raises(SettingsValidationError):
        SettingsManager.validate(Settings(), partial)


@pytest.mark.asyncio
async def test_failed_update_keeps_current(settings_manager: SettingsManager) -> None:
    await settings_manager.update({"difficulty": "advanced"})

    with pytest.raises(SettingsValidationError):
        await settings_manager.update({"difficulty": "advanced", "replacementPercentage": 0})

    assert settings_manager.current.difficulty == "advanced"
    assert settings_manager.current.replacement_percentage == 10


@pytest.mark.asyncio
async def test_invalid_stored_settings_fall_back_to_defaults(store: StateStore) -> None:
    await store.save(SETTINGS_KEY, {"difficulty": "expert"})
    manager = SettingsManager(store)

    await manager.component_load()

    assert manager.current == Settings()


@pytest.mark.asyncio
async def test_reset(settings_manager: SettingsManager) -> None:
    await settings_manager.update({"enabled": True})

    settings_manager.reset()

    assert settings_manager.current == Settings()
