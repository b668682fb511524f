import hmac
import secrets
from typing import Optional

from src.app.services.auth.session_manager import SessionManager

SESSION_KEY = "csrf_token"
FORM_FIELD = "csrf_token"
HEADER_NAME = "X-CSRF-Token"


class CsrfTokenManager:
    """
    Per-session CSRF token.

    The token lives in the session under ``csrf_token`` and is reused for every
    form until regenerate() is called (tokens are not single-use).
    """

    def __init__(self, session: SessionManager):
        self.session = session

    def generate(self) -> str:
        token = secrets.token_hex(32)
        self.session.set(SESSION_KEY, token)
        return token

    def get_token(self) -> str:
        token = self.session.get(SESSION_KEY)
        if not token:
            token = self.generate()
        return token

    def validate(self, token: Optional[str]) -> bool:
        stored = self.session.get(SESSION_KEY)
        if not stored or not token:
            return False
        return hmac.compare_digest(stored.encode(), token.encode())

    def regenerate(self) -> str:
        return self.generate()
