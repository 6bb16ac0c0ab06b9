"""User settings persisted for the popup and the page agent."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Final

from core.storage import SETTINGS_KEY
from models.settings_models import DIFFICULTY_LEVELS, Settings
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.storage import StateStore

__all__: list[str] = ["SettingsManager", "SettingsValidationError"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MIN_PERCENTAGE: Final[int] = 1
MAX_PERCENTAGE: Final[int] = 100

# Wire name -> dataclass field.
_FIELDS: Final[dict[str, str]] = {
    "enabled": "enabled",
    "targetLanguage": "target_language",
    "difficulty": "difficulty",
    "replacementPercentage": "replacement_percentage",
}


class SettingsValidationError(ValueError):
    """A partial settings update contained an unknown key or an invalid value."""


class SettingsManager:
    """Holds the current ``Settings`` and applies validated partial updates."""

    def __init__(self, store: StateStore) -> None:
        self._store: StateStore = store
        self._settings: Settings = Settings()

    @property
    def current(self) -> Settings:
        return self._settings

    async def component_load(self) -> None:
        raw: Any = await self._store.load(SETTINGS_KEY)
        if raw is None:
            self._settings = Settings()
            return
        try:
            self._settings = self.validate(Settings(), raw)
        except SettingsValidationError as err:
            logger.warning("Stored settings are invalid, using defaults: %s", err)
            self._settings = Settings()
        logger.info("Settings loaded: %s", self._settings)

    @staticmethod
    def validate(base: Settings, partial: Any) -> Settings:
        """Return ``base`` with ``partial`` applied.

        Args:
            base (Settings): Settings the update starts from.
            partial (Any): Mapping of camelCase setting names to new values.

        Returns:
            Settings: A new settings object.

        Raises:
            SettingsValidationError: If a key is unknown or a value is out of range.
        """
        if not isinstance(partial, dict):
            msg = "Settings update must be an object"
            raise SettingsValidationError(msg)

        changes: dict[str, Any] = {}
        for key, value in partial.items():
            attr: str | None = _FIELDS.get(key)
            if attr is None:
                msg: str = f"Unknown setting: '{key}'"
                raise SettingsValidationError(msg)
            changes[attr] = value

        if "enabled" in changes and not isinstance(changes["enabled"], bool):
            msg = "'enabled' must be a boolean"
            raise SettingsValidationError(msg)
        if "target_language" in changes:
            language: Any = changes["target_language"]
            if not isinstance(language, str) or not language.strip():
                msg = "'targetLanguage' must be a non-empty language code"
                raise SettingsValidationError(msg)
            changes["target_language"] = language.strip().lower()
        if "difficulty" in changes and changes["difficulty"] not in DIFFICULTY_LEVELS:
            msg = f"'difficulty' must be one of {', '.join(DIFFICULTY_LEVELS)}"
            raise SettingsValidationError(msg)
        if "replacement_percentage" in changes:
            percentage: Any = changes["replacement_percentage"]
            if isinstance(percentage, bool) or not isinstance(percentage, int):
                msg = "'replacementPercentage' must be an integer"
                raise SettingsValidationError(msg)
            if not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
                msg = f"'replacementPercentage' must be between {MIN_PERCENTAGE} and {MAX_PERCENTAGE}"
                raise SettingsValidationError(msg)

        return replace(base, **changes)

    async def update(self, partial: dict[str, Any]) -> Settings:
        """Validate and apply a partial update, then persist it.

        Raises:
            SettingsValidationError: If the update is invalid; the current settings are kept.
        """
        self._settings = self.validate(self._settings, partial)
        await self._store.save(SETTINGS_KEY, self._settings.to_dict())
        logger.info("Settings updated: %s", self._settings)
        return self._settings

    def reset(self) -> None:
        self._settings = Settings()
