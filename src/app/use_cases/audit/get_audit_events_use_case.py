"""
Get Audit Events Use Case

Retrieves account-security audit events for administrators.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import User


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events.

    Business Rules:
    - Caller must have the admin role
    - Results ordered by newest first
    - Optional filters: action (e.g. "user.login_failed") and user id
    - Each event includes action, username, timestamp, metadata
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        caller: User,
        limit: int = 50,
        action: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Returns:
            Result with events list, or Error(INSUFFICIENT_ROLE)
        """
        if not caller.is_admin():
            return Return.err(
                Error("INSUFFICIENT_ROLE", "You do not have permission to view audit events")
            )

        async with self.uow:
            events = await self.uow.audit_events.list_recent(
                limit=limit, action=action, user_id=user_id
            )

            # Resolve usernames once per distinct user
            usernames: Dict[UUID, Optional[str]] = {}
            events_list = []
            for event in events:
                username = None
                if event.user_id:
                    if event.user_id not in usernames:
                        user = await self.uow.users.get_by_id(event.user_id)
                        usernames[event.user_id] = user.username if user else None
                    username = usernames[event.user_id]

                events_list.append(
                    {
                        "action": event.action,
                        "username": username,
                        "timestamp": event.created_at.isoformat() + "Z",
                        "metadata": event.event_metadata or {},
                    }
                )

            await self.uow.commit()

        return Return.ok({"events": events_list})
