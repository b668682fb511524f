"""
EmailVerificationToken Entity

Single-use tokens proving ownership of a user's email address.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class EmailVerificationToken(SQLModel, table=True):
    """
    EmailVerificationToken entity.

    Business Rules:
    - One live token per user; resending deletes the previous one
    - Token is SHA-256 hash of the emailed value
    - Deleted when the user verifies, or by the expired-token sweep
    """

    __tablename__ = "email_verification_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", ondelete="CASCADE")
    token_hash: str = Field(unique=True, max_length=64)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_email_verification_user_id", "user_id"),
        Index("idx_email_verification_expires_at", "expires_at"),
    )

    @property
    def subject(self) -> UUID:
        return self.user_id

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at
