"""User repository — data access layer for user lookups."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.models.user import User


class UserRepository:
    """Encapsulates all database queries related to users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_identifier(self, identifier: str) -> User | None:
        """Look up a user by the exact identifier they sign in with."""
        stmt = select(User).where(User.identifier == identifier)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, identifier: str, name: str) -> User:
        """Insert a new user and flush so its primary key is populated."""
        user = User(identifier=identifier, name=name)
        self._session.add(user)
        await self._session.flush()
        return user
