from __future__ import annotations

import unicodedata

__all__: list[str] = ["StringUtils"]


class StringUtils:
    """Word-level string helpers shared by the cache, vocabulary and coordinator.

    All lookups in FluentTab are keyed by the normalized form of a word, so every
    component must agree on what "the same word" means.
    """

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return the value as a string, or an empty string for None.

        Args:
            value (str | None): The value to coerce.

        Returns:
            str: The value as a string.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def normalize_word(word: str | None) -> str:
        """Normalize a word for use as a lookup key.

        Applies Unicode NFC normalization, trims surrounding whitespace and lowercases,
        so that "House", " house " and a decomposed "house" share one key.

        Args:
            word (str | None): Raw word as seen on the page.

        Returns:
            str: Normalized key form.
        """
        return unicodedata.normalize("NFC", StringUtils.ensure_str(word)).strip().lower()

    @staticmethod
    def is_same_word(original: str | None, translation: str | None) -> bool:
        """Check whether a translation is just the original word (case-insensitive, trimmed).

        Such a result is not a useful translation and must never be shown to the user.
        """
        return StringUtils.normalize_word(original) == StringUtils.normalize_word(translation)
