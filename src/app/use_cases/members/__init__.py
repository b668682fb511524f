"""
Member Use Cases

Self-service account registration.
"""

from .register_member_use_case import RegisterMemberUseCase
from .dtos import MemberInfo, RegisterMemberCommand, RegisterMemberResponse

__all__ = [
    # Use Cases
    "RegisterMemberUseCase",
    # DTOs - Commands
    "RegisterMemberCommand",
    # DTOs - Responses
    "RegisterMemberResponse",
    # DTOs - Nested Models
    "MemberInfo",
]
