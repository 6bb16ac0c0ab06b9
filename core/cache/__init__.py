"""Translation cache package.

Provides the TTL-bound translation cache and in-flight request de-duplication.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightManager
from core.cache.manager import TranslationCacheManager

__all__: list[str] = ["InFlightManager", "TranslationCacheManager"]
