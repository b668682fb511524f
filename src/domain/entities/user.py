"""
User Entity

A CMS account. Only the security-relevant columns are modelled here.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import UserRole, UserStatus


class User(SQLModel, table=True):
    """
    User entity - a person who can sign in to the CMS.

    Business Rules:
    - Username and email are unique across all users
    - Password stored as an algorithm-tagged hash (argon2id or bcrypt)
    - Account is locked while locked_until is in the future
    - failed_login_attempts is only mutated through atomic repository updates
    - remember_token_hash holds sha256 of the cookie value, never the cookie itself
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=255)

    role: UserRole = Field(default=UserRole.subscriber)
    status: UserStatus = Field(default=UserStatus.active)
    email_verified: bool = Field(default=False)

    # Brute-force lockout
    failed_login_attempts: int = Field(default=0)
    locked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Remember-me (sha256 hex of the cookie value)
    remember_token_hash: Optional[str] = Field(default=None, index=True, max_length=64)

    # Timestamps
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_status", "status"),)

    def is_locked_out(self, now: Optional[datetime] = None) -> bool:
        if self.locked_until is None:
            return False
        return self.locked_until > (now or utcnow())

    def is_active(self) -> bool:
        return self.status == UserStatus.active

    def is_admin(self) -> bool:
        return self.role == UserRole.admin
