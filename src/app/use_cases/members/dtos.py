"""
Member Use Case DTOs (Data Transfer Objects)

Command/Response pattern for clean architecture separation:
- RegisterMemberCommand: Input to use case (validated business intent)
- RegisterMemberResponse: Output from use case (structured result)
"""

from pydantic import BaseModel

from src.domain.entities import User, UserRole


class RegisterMemberCommand(BaseModel):
    """
    Register command - represents validated registration intent

    Created by API layer after request validation passes.
    """

    username: str
    email: str
    password: str
    password_confirmation: str


class MemberInfo(BaseModel):
    """Public view of a user account"""

    id: str
    username: str
    email: str
    role: str
    status: str
    email_verified: bool

    @classmethod
    def from_user(cls, user: User) -> "MemberInfo":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            role=UserRole(user.role).value,
            status=getattr(user.status, "value", user.status),
            email_verified=user.email_verified,
        )


class RegisterMemberResponse(BaseModel):
    """Registration result"""

    user: MemberInfo
    verification_required: bool
    verification_email_sent: bool
