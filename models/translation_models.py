"""Wire models for the translation provider boundary and installation identity."""

from __future__ import annotations

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "DirectTranslationItem",
    "DirectTranslationResponse",
    "InstallationIdentity",
    "ServerTranslation",
    "SupportedLanguage",
]


@dataclass
class DirectTranslationItem(DataClassJsonMixin):
    """One element of the direct provider's ``translations`` array."""

    text: str
    detected_source_language: str | None = None


@dataclass
class DirectTranslationResponse(DataClassJsonMixin):
    """Response body of ``POST /translate`` in direct mode."""

    translations: list[DirectTranslationItem] = field(default_factory=list)


@dataclass
class ServerTranslation(DataClassJsonMixin):
    """One element of the intermediary server's translation list."""

    original_word: str
    translated_word: str | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class InstallationIdentity(DataClassJsonMixin):
    """Locally generated identity of this installation.

    Attributes:
        id (str): RFC 4122 version 4 UUID, generated once and never changed.
        registered (bool): Whether registration with the intermediary server succeeded.
        user_id (str | None): Server-side user id returned by registration.
        install_date (str): ISO 8601 timestamp of identity creation.
    """

    id: str
    registered: bool = False
    user_id: str | None = None
    install_date: str = ""


@dataclass
class SupportedLanguage(DataClassJsonMixin):
    """A language offered by the direct provider, with a lowercase code."""

    code: str
    name: str
