"""Configuration data models for the FluentTab background service.

Each dataclass mirrors one section of ``fluenttab.ini``. Field names match the INI keys
exactly, and the declared default type decides how the loader coerces the raw string.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Cache",
    "Config",
    "Direct",
    "General",
    "Intermediary",
    "Queue",
    "RateLimit",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    VERSION: str = ""
    DB_PATH: str = "fluenttab.db"
    LOG_FILE: str = "fluenttab.log"
    SCRIPT_NAME: str = ""


@dataclass
class Translation:
    PROVIDER: str = "direct"
    SOURCE_LANGUAGE: str = "auto"
    TIMEOUT: float = 5.0


@dataclass
class Direct:
    API_URL: str = "https://api-free.deepl.com/v2"


@dataclass
class Intermediary:
    SERVER_URL: str = "https://fluent-tab.dbuidl.com/api/extension"
    BATCH_SIZE: int = 50
    VERSION: str = "1.0"


@dataclass
class RateLimit:
    MAX_REQUESTS: int = 2
    WINDOW_MS: int = 2000


@dataclass
class Cache:
    TTL_HOURS: float = 24.0
    SWEEP_INTERVAL_HOURS: float = 6.0
    PERSIST_EVERY: int = 10


@dataclass
class Queue:
    CHUNK_SIZE: int = 50
    INFLIGHT_TIMEOUT: float = 10.0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    DIRECT: Direct = field(default_factory=Direct)
    INTERMEDIARY: Intermediary = field(default_factory=Intermediary)
    RATE_LIMIT: RateLimit = field(default_factory=RateLimit)
    CACHE: Cache = field(default_factory=Cache)
    QUEUE: Queue = field(default_factory=Queue)
