from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def list_recent(
        self,
        limit: int = 50,
        action: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> List[AuditEvent]:
        """Get audit events newest first, optionally filtered by action and user"""
        pass
