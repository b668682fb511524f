from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.entities import AuditEvent


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def list_recent(
        self,
        limit: int = 50,
        action: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> List[AuditEvent]:
        """Get audit events newest first, optionally filtered by action and user"""
        stmt = select(AuditEvent)
        if action is not None:
            stmt = stmt.where(AuditEvent.action == action)
        if user_id is not None:
            stmt = stmt.where(AuditEvent.user_id == user_id)

        stmt = stmt.order_by(AuditEvent.created_at.desc()).limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())
