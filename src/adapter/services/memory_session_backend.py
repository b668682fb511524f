import copy
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from src.app.services.auth.session_backend import ISessionBackend


class MemorySessionBackend(ISessionBackend):
    """
    In-process session storage.

    Entries expire ttl seconds after their last write. Expired entries are
    swept every ``purge_every`` writes. Suitable for a single worker; data is
    lost on restart.
    """

    def __init__(self, clock: Callable[[], float] = time.time, purge_every: int = 100):
        self._clock = clock
        self._purge_every = max(1, purge_every)
        self._writes = 0
        self._lock = threading.Lock()
        self._sessions: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            expires_at, data = entry
            if expires_at <= self._clock():
                del self._sessions[session_id]
                return None
            return copy.deepcopy(data)

    def write(self, session_id: str, data: Dict[str, Any], ttl_seconds: int) -> None:
        with self._lock:
            self._sessions[session_id] = (self._clock() + ttl_seconds, copy.deepcopy(data))
            self._writes += 1
            sweep = self._writes % self._purge_every == 0
        if sweep:
            self.purge_expired()

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        """Drop expired entries, returning how many were removed"""
        now = self._clock()
        with self._lock:
            expired = [sid for sid, (expires_at, _) in self._sessions.items() if expires_at <= now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
