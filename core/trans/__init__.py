"""Translation provider management and interfaces.

This package provides translation through pluggable provider implementations selected by
configuration, with in-flight request sharing across tabs.
"""

from core.trans.interface import (
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationConfigurationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from core.trans.manager import TransManager

__all__: list[str] = [
    "Result",
    "TransInterface",
    "TransManager",
    "TranslateExceptionError",
    "TranslationConfigurationError",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
]
