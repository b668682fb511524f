from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ISessionBackend(ABC):
    """Server-side session storage interface - application layer"""

    @abstractmethod
    def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Get session data, or None when the ID is unknown or expired"""
        pass

    @abstractmethod
    def write(self, session_id: str, data: Dict[str, Any], ttl_seconds: int) -> None:
        """Store session data and push its expiry ttl_seconds into the future"""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Forget a session"""
        pass
