"""Core services of the FluentTab background process.

This package contains the background service composition, the request coordinator, per-tab
queues, the rate limiter, the translation cache, vocabulary and override stores, and the
translation provider management.
"""

from core.background import BackgroundService
from core.coordinator import Coordinator
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "BackgroundService",
    "Coordinator",
]
