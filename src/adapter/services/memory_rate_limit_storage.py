import threading
import time
from typing import Callable, Dict, List

from src.app.services.auth.rate_limit_storage import IRateLimitStorage


class MemoryRateLimitStorage(IRateLimitStorage):
    """
    Process-local fixed-window counters.

    A lock guards every read-modify-write so concurrent requests in the same
    process cannot lose increments.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        # key -> [count, reset_at]
        self._windows: Dict[str, List[float]] = {}

    def _active(self, key: str, now: float):
        window = self._windows.get(key)
        if window is None or window[1] <= now:
            return None
        return window

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        with self._lock:
            now = self._clock()
            window = self._active(key, now)
            if window is None:
                window = [0, now + window_seconds]
                self._windows[key] = window
            window[0] += 1
            return window[0] <= limit

    async def get_remaining_attempts(self, key: str, limit: int, window_seconds: int) -> int:
        with self._lock:
            window = self._active(key, self._clock())
            if window is None:
                return limit
            return max(0, limit - int(window[0]))

    async def get_reset_time(self, key: str, window_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            window = self._active(key, now)
            if window is None:
                return int(now + window_seconds)
            return int(window[1])

    async def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    async def clear(self) -> None:
        with self._lock:
            self._windows.clear()
