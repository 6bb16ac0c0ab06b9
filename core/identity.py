"""Installation identity used to identify this instance to an intermediary translation server."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from core.storage import IDENTITY_KEY
from models.translation_models import InstallationIdentity
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.storage import StateStore

__all__: list[str] = ["InstallationIdentityManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InstallationIdentityManager:
    """Creates, persists and tracks the registration state of the installation identity.

    The identifier is a random version 4 UUID created on first load and kept for the lifetime
    of the installation, including across a full data clear.
    """

    def __init__(self, store: StateStore, *, now: Callable[[], datetime] = _utc_now) -> None:
        self._store: StateStore = store
        self._now: Callable[[], datetime] = now
        self._identity: InstallationIdentity | None = None

    async def component_load(self) -> None:
        raw: Any = await self._store.load(IDENTITY_KEY)
        if isinstance(raw, dict):
            try:
                self._identity = InstallationIdentity.from_dict(raw)
            except (KeyError, TypeError, ValueError) as err:
                logger.warning("Stored installation identity is unreadable, generating a new one: %s", err)

        if self._identity is None or not self._identity.id:
            self._identity = InstallationIdentity(id=str(uuid.uuid4()), install_date=self._now().isoformat())
            await self._persist()
            logger.info("Generated new installation identity: %s", self._identity.id)
        else:
            logger.info("Installation identity: %s (registered: %s)", self._identity.id, self._identity.registered)

    @property
    def identity(self) -> InstallationIdentity:
        if self._identity is None:
            msg = "Installation identity has not been loaded"
            raise RuntimeError(msg)
        return self._identity

    @property
    def installation_id(self) -> str:
        return self.identity.id

    @property
    def is_registered(self) -> bool:
        return self._identity is not None and self._identity.registered

    @property
    def user_id(self) -> str | None:
        return self._identity.user_id if self._identity else None

    @property
    def install_date(self) -> str:
        return self._identity.install_date if self._identity else ""

    async def mark_registered(self, user_id: str | None) -> bool:
        """Record a successful registration.

        Returns:
            bool: True if the registration state was persisted.
        """
        self.identity.registered = True
        self.identity.user_id = user_id
        return await self._persist()

    async def _persist(self) -> bool:
        return await self._store.save(IDENTITY_KEY, self.identity.to_dict())
