from datetime import datetime
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import delete
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

TToken = TypeVar("TToken", bound=SQLModel)


class SqlModelTokenRepository(Generic[TToken]):
    """
    Shared SQLModel implementation for single-use token tables.

    Subclasses set ``model`` and ``subject_field``; every token table has
    ``token_hash`` and ``expires_at`` columns.
    """

    model: Type[TToken]
    subject_field: str

    def __init__(self, session: AsyncSession):
        self.session = session

    def _subject_column(self):
        return getattr(self.model, self.subject_field)

    async def create(self, token: TToken) -> TToken:
        """Create a new token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token_hash(self, token_hash: str) -> Optional[TToken]:
        """Get token by sha256 hash of its plaintext"""
        stmt = select(self.model).where(self.model.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.first()

    async def delete_by_subject(self, subject: Any) -> int:
        """Delete every token issued for the subject"""
        stmt = delete(self.model).where(self._subject_column() == subject)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_by_token_hash(self, token_hash: str) -> int:
        """Delete a single token"""
        stmt = delete(self.model).where(self.model.token_hash == token_hash)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        """Delete tokens whose expires_at is in the past"""
        stmt = delete(self.model).where(self.model.expires_at < now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
