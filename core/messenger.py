# ruff: noqa: BLE001
"""Outbound messaging to browser tabs.

Delivery is best effort: a tab that navigated away or closed simply does not receive the
message, and the sender is told so through a ``DeliveryResult`` it may ignore.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeAlias

from models.message_models import DeliveryResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

__all__: list[str] = ["CallbackTabMessenger", "TabMessenger"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

TabCallback: TypeAlias = "Callable[[dict[str, Any]], Awaitable[None] | None]"


class TabMessenger(ABC):
    """Boundary through which events reach a tab's page agent."""

    @abstractmethod
    async def send(self, tab_id: int, message: dict[str, Any]) -> DeliveryResult:
        """Send a message to a tab.

        Implementations must never raise for delivery problems.

        Args:
            tab_id (int): Destination tab.
            message (dict[str, Any]): camelCase JSON-compatible event.

        Returns:
            DeliveryResult: Whether the message was handed to the tab.
        """
        raise NotImplementedError


class CallbackTabMessenger(TabMessenger):
    """Delivers messages to callbacks registered per tab by the host process."""

    def __init__(self) -> None:
        self._callbacks: dict[int, TabCallback] = {}

    def register(self, tab_id: int, callback: TabCallback) -> None:
        self._callbacks[tab_id] = callback
        logger.debug("Tab %d registered", tab_id)

    def unregister(self, tab_id: int) -> None:
        if self._callbacks.pop(tab_id, None) is not None:
            logger.debug("Tab %d unregistered", tab_id)

    def is_registered(self, tab_id: int) -> bool:
        return tab_id in self._callbacks

    async def send(self, tab_id: int, message: dict[str, Any]) -> DeliveryResult:
        callback: TabCallback | None = self._callbacks.get(tab_id)
        if callback is None:
            return DeliveryResult(delivered=False, error=f"Tab {tab_id} is not available")
        try:
            result: Awaitable[None] | None = callback(message)
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as err:
            logger.debug("Delivery to tab %d failed: %r", tab_id, err)
            return DeliveryResult(delivered=False, error=str(err))
        return DeliveryResult(delivered=True)
