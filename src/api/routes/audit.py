"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import ClientError, ServerError
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.depends import get_current_user, get_unit_of_work
from src.domain.entities import User

router = APIRouter(prefix="/audit", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    action: str
    username: Optional[str]
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    """GET /audit/auth-events response payload"""

    events: List[AuditEventResponse]


@router.get(
    "/auth-events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_auth_events(
    current_user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    action: Optional[str] = Query(None, description="Only events with this action"),
    user_id: Optional[UUID] = Query(None, description="Only events for this user"),
):
    """
    Get Authentication Audit Events

    Returns login, lockout, password reset and verification events, newest first.
    Only accessible by CMS administrators.

    Raises:
        - 401 Unauthorized: Not logged in
        - 403 Forbidden: Caller is not an admin
    """
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(current_user, limit=limit, action=action, user_id=user_id)

    if result.is_err():
        error = result.error
        if error.code == "INSUFFICIENT_ROLE":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value
