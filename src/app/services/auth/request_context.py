from dataclasses import dataclass
from typing import Optional

from src.app.services.auth.cookie_jar import CookieJar
from src.app.services.auth.session_manager import SessionManager


@dataclass
class RequestContext:
    """Per-request values the auth services need: who is calling and their session"""

    session: SessionManager
    cookies: CookieJar
    ip: str = "unknown"
    user_agent: Optional[str] = None
