"""
Use Cases

Use cases are organized into domain folders:
- members/: Member registration
- audit/: Audit logs

Import from subdirectories for better organization.
"""

from .members import (
    RegisterMemberCommand,
    RegisterMemberResponse,
    RegisterMemberUseCase,
    MemberInfo,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Members
    "RegisterMemberCommand",
    "RegisterMemberResponse",
    "RegisterMemberUseCase",
    "MemberInfo",
    # Audit
    "GetAuditEventsUseCase",
]
