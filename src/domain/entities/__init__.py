"""
Account Security Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import UserRole, UserStatus

# Export all entities
from .user import User
from .password_reset_token import PasswordResetToken
from .email_verification_token import EmailVerificationToken
from .rate_limit_record import RateLimitRecord
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "UserRole",
    "UserStatus",
    # Entities
    "User",
    "PasswordResetToken",
    "EmailVerificationToken",
    "RateLimitRecord",
    "AuditEvent",
]
