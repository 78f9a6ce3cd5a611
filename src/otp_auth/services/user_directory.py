"""User directory — turns a verified identifier into an identity record."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from otp_auth.config import Settings, settings
from otp_auth.database.engine import async_session_factory
from otp_auth.database.repository import UserRepository
from otp_auth.models.identity import Identity

logger = logging.getLogger(__name__)


class UserDirectory(ABC):
    """Source of identities for identifiers that just passed verification."""

    @abstractmethod
    async def resolve(self, identifier: str) -> Identity:
        """Return the identity owning *identifier*."""


class DemoUserDirectory(UserDirectory):
    """Every identifier maps to the same static demo user."""

    def __init__(self, name: str = "Demo User") -> None:
        self._name = name

    async def resolve(self, identifier: str) -> Identity:
        return Identity(id=1, identifier=identifier, name=self._name)


class DatabaseUserDirectory(UserDirectory):
    """Looks identifiers up in the ``users`` table.

    An identifier seen for the first time is registered on the spot, so a
    successful OTP verification doubles as sign-up.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        default_name: str = "Demo User",
    ) -> None:
        self._session_factory = session_factory
        self._default_name = default_name

    async def resolve(self, identifier: str) -> Identity:
        async with self._session_factory() as session:
            repo = UserRepository(session)
            user = await repo.find_by_identifier(identifier)
            if user is None:
                try:
                    user = await repo.add(identifier, self._default_name)
                    await session.commit()
                    logger.info("Registered new user %s (id=%s)", identifier, user.id)
                except IntegrityError:
                    # A concurrent sign-in registered the same identifier first
                    await session.rollback()
                    user = await repo.find_by_identifier(identifier)
                    if user is None:
                        raise
            return Identity(id=user.id, identifier=user.identifier, name=user.name)


def build_user_directory(config: Settings | None = None) -> UserDirectory:
    """Instantiate the directory selected by ``config.user_directory``."""
    cfg = config or settings
    if cfg.user_directory == "database":
        return DatabaseUserDirectory(default_name=cfg.demo_user_name)
    return DemoUserDirectory(name=cfg.demo_user_name)
