"""
Request-scoped cookie access.

Services never touch the framework response directly: they read incoming
cookies from the jar and queue outgoing ones, and the HTTP layer copies the
queue onto the response once the handler is done.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional


@dataclass
class QueuedCookie:
    name: str
    value: str
    max_age: int
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    httponly: bool = True
    samesite: str = "lax"

    @property
    def is_expired(self) -> bool:
        return self.max_age <= 0


class CookieJar:
    def __init__(self, incoming: Optional[Mapping[str, str]] = None):
        self._incoming: Dict[str, str] = dict(incoming or {})
        self._queued: Dict[str, QueuedCookie] = {}

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Current value as seen by the rest of this request"""
        queued = self._queued.get(name)
        if queued is not None:
            return None if queued.is_expired else queued.value
        return self._incoming.get(name, default)

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def queue(
        self,
        name: str,
        value: str,
        max_age: int,
        path: str = "/",
        domain: Optional[str] = None,
        secure: bool = True,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> None:
        self._queued[name] = QueuedCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )

    def expire(self, name: str, path: str = "/", domain: Optional[str] = None) -> None:
        self.queue(name, "", max_age=0, path=path, domain=domain)

    @property
    def queued(self) -> List[QueuedCookie]:
        return list(self._queued.values())

    def apply(self, response) -> None:
        """Write queued cookies onto a Starlette/FastAPI response"""
        for cookie in self._queued.values():
            if cookie.is_expired:
                response.delete_cookie(
                    cookie.name,
                    path=cookie.path,
                    domain=cookie.domain,
                    secure=cookie.secure,
                    httponly=cookie.httponly,
                    samesite=cookie.samesite,
                )
            else:
                response.set_cookie(
                    cookie.name,
                    cookie.value,
                    max_age=cookie.max_age,
                    path=cookie.path,
                    domain=cookie.domain,
                    secure=cookie.secure,
                    httponly=cookie.httponly,
                    samesite=cookie.samesite,
                )
