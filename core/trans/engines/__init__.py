"""Translation provider implementations.

This package contains concrete implementations of the TransInterface:

- DirectTranslation: one rate-limited HTTP call per word against the provider API.
- IntermediaryTranslation: batched calls through the intermediary server, with registration and feedback.
"""

from core.trans.engines.trans_direct import DirectTranslation
from core.trans.engines.trans_intermediary import IntermediaryTranslation

__all__: list[str] = [
    "DirectTranslation",
    "IntermediaryTranslation",
]
