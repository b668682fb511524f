"""
PasswordResetToken Entity

Secure password reset tokens.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - secure password reset tokens.

    Business Rules:
    - Keyed by email, not user id, so a request for an unknown address
      behaves exactly like one for a known address
    - Token is SHA-256 hash of 32 random bytes (64 hex chars in the email link)
    - Single-use: deleted once the password has been changed
    - Issuing a new token deletes all earlier tokens for the same email
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255)
    token_hash: str = Field(max_length=64)  # SHA-256 output

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_password_reset_email", "email"),
        Index("idx_password_reset_token_hash", "token_hash"),
        Index("idx_password_reset_expires_at", "expires_at"),
    )

    @property
    def subject(self) -> str:
        return self.email

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at
