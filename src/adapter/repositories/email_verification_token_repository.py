from typing import Optional
from uuid import UUID

from sqlmodel import select

from src.adapter.repositories.token_repository import SqlModelTokenRepository
from src.app.repositories.email_verification_token_repository import (
    IEmailVerificationTokenRepository,
)
from src.domain.entities import EmailVerificationToken


class EmailVerificationTokenRepository(
    SqlModelTokenRepository[EmailVerificationToken], IEmailVerificationTokenRepository
):
    """EmailVerificationToken repository implementation using SQLModel"""

    model = EmailVerificationToken
    subject_field = "user_id"

    async def get_by_user_id(self, user_id: UUID) -> Optional[EmailVerificationToken]:
        """Get the most recent token issued for a user"""
        stmt = (
            select(EmailVerificationToken)
            .where(EmailVerificationToken.user_id == user_id)
            .order_by(EmailVerificationToken.created_at.desc())
        )
        result = await self.session.exec(stmt)
        return result.first()
