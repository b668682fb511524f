from abc import abstractmethod
from typing import Optional
from uuid import UUID

from src.app.repositories.token_repository import ITokenRepository
from src.domain.entities import EmailVerificationToken


class IEmailVerificationTokenRepository(ITokenRepository[EmailVerificationToken, UUID]):
    """EmailVerificationToken repository interface - subject is the user id"""

    @abstractmethod
    async def get_by_user_id(self, user_id: UUID) -> Optional[EmailVerificationToken]:
        """Get the most recent token issued for a user"""
        pass
