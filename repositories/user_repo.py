import asyncio
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import get_password_hash, verify_password
from core.enums import UserRole
from models.user import User
from repositories.base import BaseRepository

# Compared against when the username is unknown so both paths cost one bcrypt check
_DUMMY_HASH = "$2b$12$CwTycUXWue0Thq9StjUM0uJ8.jAcbWd6M5Ea2FzK4cD9yXq1vZp8e"


class UserRepository(BaseRepository[User]):
    """Repository for User operations (data access only)"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        result = await self.db.execute(select(exists().where(User.username == username)))
        return bool(result.scalar())

    async def exists_by_email(self, email: str) -> bool:
        result = await self.db.execute(select(exists().where(User.email == email)))
        return bool(result.scalar())

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate user by username and password.

        Returns User if credentials are valid, None otherwise.
        """
        user = await self.get_by_username(username)

        if not user:
            await asyncio.to_thread(verify_password, password, _DUMMY_HASH)
            return None

        if not await asyncio.to_thread(verify_password, password, user.hashed_password):
            return None

        return user

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        name: str,
        role: str = UserRole.USER.value,
    ) -> User:
        """Create a new user with hashed password"""
        hashed = await asyncio.to_thread(get_password_hash, password)
        user = User(
            username=username,
            email=email,
            hashed_password=hashed,
            name=name,
            role=role,
        )
        return await self.create(user)
