"""Messages exchanged with the page agent.

Inbound word candidates arrive with every ``processWords`` request; outbound events are
pushed to the originating tab as camelCase JSON objects tagged with an ``action`` field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "DeliveryResult",
    "ProgressUpdate",
    "TranslationReady",
    "WordCandidate",
]


@dataclass
class WordCandidate:
    """A word selected by the page agent for possible replacement.

    Attributes:
        text (str): The word as it appears on the page.
        index (int): Offset of the word within its source text node.
        source_ref (Any): Opaque handle of the text node, never inspected here.
    """

    text: str
    index: int = 0
    source_ref: Any = None

    @classmethod
    def from_message(cls, item: dict[str, Any]) -> WordCandidate:
        """Build a candidate from a page agent ``{text, index}`` object."""
        return cls(text=str(item.get("text", "")), index=int(item.get("index", 0)), source_ref=item.get("ref"))


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class TranslationReady(DataClassJsonMixin):
    original_text: str
    translation: str
    index: int
    action: str = "translationReady"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class ProgressUpdate(DataClassJsonMixin):
    """Progress of a tab's queue, pushed after every chunk and once when the queue drains.

    Attributes:
        message (str): Human readable status ("Translating words..." or "Ready").
        current (int): Words processed so far in this run.
        total (int): Words submitted in this run.
        percentage (int): Rounded ``current / total`` as a percentage.
        tab_id (int): Originating tab.
    """

    message: str
    current: int
    total: int
    percentage: int
    tab_id: int
    action: str = "progressUpdate"


@dataclass
class DeliveryResult:
    """Outcome of a best-effort send to a tab; callers are free to ignore it."""

    delivered: bool
    error: str | None = None
