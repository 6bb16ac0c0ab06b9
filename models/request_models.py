"""Typed requests accepted by the coordinator and the response they produce.

Each request class has exactly one handler in ``Coordinator``; ``Request`` is the union
of every accepted variant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from models.message_models import WordCandidate

__all__: list[str] = [
    "BlacklistWord",
    "ClearAllData",
    "ClearCache",
    "ExportAllData",
    "GetDiagnostics",
    "GetStats",
    "ImportData",
    "MarkIncorrect",
    "MarkLearned",
    "ProcessWords",
    "Request",
    "Response",
    "SetCustomTranslation",
    "ShouldTranslate",
    "TabClosed",
    "UpdateSettings",
]


@dataclass
class ProcessWords:
    tab_id: int
    words: list[WordCandidate] = field(default_factory=list)
    target_language: str | None = None


@dataclass
class MarkLearned:
    word: str


@dataclass
class BlacklistWord:
    word: str


@dataclass
class SetCustomTranslation:
    word: str
    translation: str
    target_language: str | None = None


@dataclass
class MarkIncorrect:
    word: str
    translation: str
    target_language: str | None = None


@dataclass
class UpdateSettings:
    partial: dict[str, Any] = field(default_factory=dict)


@dataclass
class GetStats:
    pass


@dataclass
class GetDiagnostics:
    pass


@dataclass
class ClearCache:
    pass


@dataclass
class ExportAllData:
    pass


@dataclass
class ImportData:
    snapshot: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClearAllData:
    pass


@dataclass
class TabClosed:
    tab_id: int


@dataclass
class ShouldTranslate:
    word: str


Request: TypeAlias = (
    ProcessWords
    | MarkLearned
    | BlacklistWord
    | SetCustomTranslation
    | MarkIncorrect
    | UpdateSettings
    | GetStats
    | GetDiagnostics
    | ClearCache
    | ExportAllData
    | ImportData
    | ClearAllData
    | TabClosed
    | ShouldTranslate
)


@dataclass
class Response:
    """Result of a coordinator request.

    Attributes:
        success (bool): False if the action failed; ``error`` then carries a user-facing message.
        data (Any): Request-specific payload (stats dict, snapshot, boolean, ...).
        error (str | None): Failure description.
    """

    success: bool = True
    data: Any = None
    error: str | None = None
