from abc import ABC, abstractmethod


class IRateLimitStorage(ABC):
    """
    Fixed-window counter storage.

    allow() increments first and then compares the post-increment count with
    the limit, so a rejected call still counts against the window.
    """

    @abstractmethod
    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one hit for key; True while the window count is within limit"""
        pass

    @abstractmethod
    async def get_remaining_attempts(self, key: str, limit: int, window_seconds: int) -> int:
        """Hits left in the current window (limit when no window is open)"""
        pass

    @abstractmethod
    async def get_reset_time(self, key: str, window_seconds: int) -> int:
        """Unix timestamp at which the current window closes"""
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget the counter for key"""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Forget every counter"""
        pass
