"""
Account Security Domain Events

Emitted by the authentication and token services through an injected event
sink. Each event knows its dotted name and how to flatten itself into audit
metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from src.domain.base import utcnow


class LoginFailureReason:
    """Reason codes attached to user.login_failed"""

    USER_NOT_FOUND = "user_not_found"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_INACTIVE = "account_inactive"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class DomainEvent:
    name = "event"

    occurred_at: datetime = field(default_factory=utcnow, kw_only=True)

    @property
    def user_id(self) -> Optional[UUID]:
        return None

    def to_metadata(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class UserLoginEvent(DomainEvent):
    name = "user.login"

    subject_id: UUID
    username: str
    ip: str
    remember: bool = False

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"username": self.username, "ip": self.ip, "remember": self.remember}


@dataclass(frozen=True)
class UserLoginFailedEvent(DomainEvent):
    name = "user.login_failed"

    identifier: str
    ip: str
    reason: str

    def to_metadata(self) -> Dict[str, Any]:
        return {"identifier": self.identifier, "ip": self.ip, "reason": self.reason}


@dataclass(frozen=True)
class UserLogoutEvent(DomainEvent):
    name = "user.logout"

    subject_id: UUID
    session_duration: float

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"session_duration": round(self.session_duration, 3)}


@dataclass(frozen=True)
class UserLockedOutEvent(DomainEvent):
    name = "user.locked_out"

    subject_id: UUID
    locked_until: datetime
    failed_attempts: int

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "locked_until": self.locked_until.isoformat(),
            "failed_attempts": self.failed_attempts,
        }


@dataclass(frozen=True)
class PasswordResetRequestedEvent(DomainEvent):
    name = "password.reset_requested"

    subject_id: UUID
    email: str
    ip: str = "unknown"

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"email": self.email, "ip": self.ip}


@dataclass(frozen=True)
class PasswordResetCompletedEvent(DomainEvent):
    name = "password.reset_completed"

    subject_id: UUID
    ip: str = "unknown"

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"ip": self.ip}


@dataclass(frozen=True)
class EmailVerifiedEvent(DomainEvent):
    name = "email.verified"

    subject_id: UUID
    email: str

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"email": self.email}


@dataclass(frozen=True)
class UserRegisteredEvent(DomainEvent):
    name = "user.registered"

    subject_id: UUID
    username: str
    email: str

    @property
    def user_id(self) -> Optional[UUID]:
        return self.subject_id

    def to_metadata(self) -> Dict[str, Any]:
        return {"username": self.username, "email": self.email}
