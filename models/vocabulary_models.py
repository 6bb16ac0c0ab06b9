"""Models for vocabulary tracking and user overrides.

Defines the per-word vocabulary record, user-supplied custom translations and the
diagnostic log of translations the user flagged as wrong.
"""

from __future__ import annotations

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CustomTranslation",
    "IncorrectTranslation",
    "VocabularyEntry",
    "VocabularyStats",
]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class VocabularyEntry(DataClassJsonMixin):
    """A word that has been surfaced to the user at least once.

    Attributes:
        original (str): Word as it appeared on the page (original casing).
        translation (str): Translation last shown for the word.
        encounters (int): Number of times the word was surfaced (>= 1).
        first_seen (float): Epoch seconds of the first encounter.
        last_seen (float): Epoch seconds of the latest encounter.
    """

    original: str
    translation: str
    encounters: int
    first_seen: float
    last_seen: float


@dataclass
class VocabularyStats:
    vocabulary_size: int = 0
    learned_count: int = 0


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CustomTranslation(DataClassJsonMixin):
    """User override that takes precedence over provider and cache results.

    Attributes:
        translation (str): Translation chosen by the user.
        target_language (str): Target language the override applies to.
        created_at (float): Epoch seconds when the override was set.
    """

    translation: str
    target_language: str
    created_at: float


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class IncorrectTranslation(DataClassJsonMixin):
    word: str
    incorrect_translation: str
    timestamp: float
    target_language: str
