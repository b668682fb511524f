from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, Optional, TypeVar

TToken = TypeVar("TToken")
TSubject = TypeVar("TSubject")


class ITokenRepository(ABC, Generic[TToken, TSubject]):
    """
    Single-use token repository interface - application layer

    A subject is whatever the token is issued for: an email address for
    password resets, a user id for email verification.
    """

    @abstractmethod
    async def create(self, token: TToken) -> TToken:
        """Create a new token"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[TToken]:
        """Get token by sha256 hash of its plaintext"""
        pass

    @abstractmethod
    async def delete_by_subject(self, subject: TSubject) -> int:
        """Delete every token issued for the subject"""
        pass

    @abstractmethod
    async def delete_by_token_hash(self, token_hash: str) -> int:
        """Delete a single token"""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete tokens whose expires_at is in the past"""
        pass
