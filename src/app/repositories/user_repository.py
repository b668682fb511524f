from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        pass

    @abstractmethod
    async def get_by_remember_token_hash(self, token_hash: str) -> Optional[User]:
        """Get user by sha256 hash of a remember-me token"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def increment_failed_login_attempts(self, user_id: UUID) -> int:
        """
        Atomically add one to failed_login_attempts.

        Returns:
            The counter value after the increment, or -1 if the user does not exist
        """
        pass

    @abstractmethod
    async def reset_failed_login_attempts(self, user_id: UUID) -> bool:
        """Zero failed_login_attempts and clear locked_until"""
        pass

    @abstractmethod
    async def set_locked_until(self, user_id: UUID, locked_until: Optional[datetime]) -> bool:
        """Lock the account until the given time (None unlocks)"""
        pass

    @abstractmethod
    async def set_remember_token_hash(self, user_id: UUID, token_hash: Optional[str]) -> bool:
        """Store or clear the remember-me token hash"""
        pass
