from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_repository import IUserRepository
from src.domain.base import utcnow
from src.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        stmt = select(User).where(User.username == username)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        stmt = select(User).where(User.email == email)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_remember_token_hash(self, token_hash: str) -> Optional[User]:
        """Get user by sha256 hash of a remember-me token"""
        stmt = select(User).where(User.remember_token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.first()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        user.updated_at = utcnow()
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def increment_failed_login_attempts(self, user_id: UUID) -> int:
        """
        Atomically add one to failed_login_attempts.

        The increment happens in a single UPDATE so concurrent failures are
        never lost; the new value is read back inside the same transaction.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(failed_login_attempts=User.failed_login_attempts + 1)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return -1

        count_stmt = select(User.failed_login_attempts).where(User.id == user_id)
        count = (await self.session.execute(count_stmt)).scalar_one()
        return int(count)

    async def reset_failed_login_attempts(self, user_id: UUID) -> bool:
        """Zero failed_login_attempts and clear locked_until"""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(failed_login_attempts=0, locked_until=None)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def set_locked_until(self, user_id: UUID, locked_until: Optional[datetime]) -> bool:
        """Lock the account until the given time (None unlocks)"""
        stmt = update(User).where(User.id == user_id).values(locked_until=locked_until)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def set_remember_token_hash(self, user_id: UUID, token_hash: Optional[str]) -> bool:
        """Store or clear the remember-me token hash"""
        stmt = update(User).where(User.id == user_id).values(remember_token_hash=token_hash)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0
