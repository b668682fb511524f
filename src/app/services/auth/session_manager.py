"""
Cookie-backed server-side session.

Lifecycle: not started -> started -> destroyed. Every accessor starts the
session lazily, so callers never need to call ``start()`` themselves.
"""

import logging
import secrets
from typing import Any, Dict, Optional

from src.app.services.auth.cookie_jar import CookieJar
from src.app.services.auth.session_backend import ISessionBackend

logger = logging.getLogger(__name__)

FLASH_KEY = "_flash"


class SessionManager:
    """
    Business Rules:
    - Strict IDs: an incoming session ID is adopted only if the backend knows it
    - A new session is stored, and its cookie sent, only once something is written
    - The session cookie is HttpOnly, Secure and SameSite=Lax by default
    - regenerate() keeps the data and swaps the ID (call on privilege change)
    - destroy() wipes the data, drops server-side state and expires the cookie;
      the next accessor starts a fresh session with a new ID
    - Flash values are read once
    """

    def __init__(
        self,
        backend: ISessionBackend,
        cookies: CookieJar,
        cookie_name: str = "cms_session",
        lifetime: int = 7200,
        secure: bool = True,
        httponly: bool = True,
        samesite: str = "lax",
        path: str = "/",
        domain: Optional[str] = None,
    ):
        self.backend = backend
        self.cookies = cookies
        self.cookie_name = cookie_name
        self.lifetime = lifetime
        self.secure = secure
        self.httponly = httponly
        self.samesite = samesite
        self.path = path
        self.domain = domain

        self._id: Optional[str] = None
        self._data: Dict[str, Any] = {}
        self._started = False
        self._persisted = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return

        incoming_id = self.cookies.get(self.cookie_name)
        data = self.backend.read(incoming_id) if incoming_id else None

        self._started = True

        if data is not None:
            self._id = incoming_id
            self._data = data
            self._persisted = True
            # Sliding expiry
            self._save()
        else:
            if incoming_id:
                logger.debug("Ignoring unknown session id from cookie")
            self._id = self._new_id()
            self._data = {}
            self._persisted = False

    def is_started(self) -> bool:
        return self._started

    def get_id(self) -> str:
        self.start()
        return self._id

    def regenerate(self, delete_old: bool = True) -> None:
        """Issue a new session ID, keeping the current data"""
        self.start()
        old_id = self._id
        self._id = self._new_id()
        if delete_old and self._persisted:
            self.backend.delete(old_id)
        self._persisted = False
        self._save()

    def destroy(self) -> None:
        self.start()
        if self._persisted:
            self.backend.delete(self._id)
        self._id = None
        self._data = {}
        self._started = False
        self._persisted = False
        self.cookies.expire(self.cookie_name, path=self.path, domain=self.domain)

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        self.start()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.start()
        self._data[key] = value
        self._save()

    def has(self, key: str) -> bool:
        self.start()
        return key in self._data

    def remove(self, key: str) -> None:
        self.start()
        if key in self._data:
            del self._data[key]
            self._save()

    def all(self) -> Dict[str, Any]:
        self.start()
        return {k: v for k, v in self._data.items() if k != FLASH_KEY}

    # ------------------------------------------------------------------
    # Flash data
    # ------------------------------------------------------------------

    def flash(self, key: str, value: Any) -> None:
        self.start()
        self._data.setdefault(FLASH_KEY, {})[key] = value
        self._save()

    def get_flash(self, key: str, default: Any = None) -> Any:
        self.start()
        flashes = self._data.get(FLASH_KEY, {})
        if key not in flashes:
            return default

        value = flashes.pop(key)
        if not flashes:
            self._data.pop(FLASH_KEY, None)
        self._save()
        return value

    def has_flash(self, key: str) -> bool:
        self.start()
        return key in self._data.get(FLASH_KEY, {})

    def get_all_flash(self) -> Dict[str, Any]:
        self.start()
        flashes = self._data.pop(FLASH_KEY, {})
        if flashes:
            self._save()
        return flashes

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _new_id() -> str:
        return secrets.token_urlsafe(32)

    def _save(self) -> None:
        self.backend.write(self._id, self._data, self.lifetime)
        if not self._persisted:
            self._persisted = True
            self._queue_cookie()

    def _queue_cookie(self) -> None:
        self.cookies.queue(
            self.cookie_name,
            self._id,
            max_age=self.lifetime,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )
