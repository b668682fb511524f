"""
Account Security Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class UserRole(str, Enum):
    """CMS role, ordered from most to least privileged"""

    admin = "admin"
    editor = "editor"
    author = "author"
    subscriber = "subscriber"

    @classmethod
    def values(cls) -> list[str]:
        return [role.value for role in cls]

    @property
    def label(self) -> str:
        return {
            UserRole.admin: "Administrator",
            UserRole.editor: "Editor",
            UserRole.author: "Author",
            UserRole.subscriber: "Subscriber",
        }[self]
