from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.services.event_sinks import RecordingEventSink
from src.adapter.services.logging_mailer import LoggingMailer
from src.adapter.services.memory_session_backend import MemorySessionBackend
from src.app.services.auth.cookie_jar import CookieJar
from src.app.services.auth.password_hasher import PasswordHasher
from src.app.services.auth.request_context import RequestContext
from src.app.services.auth.session_manager import SessionManager


class FakeClock:
    """Manually advanced clock returning epoch seconds"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.get_by_username = AsyncMock(return_value=None)
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_remember_token_hash = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)
    uow.users.increment_failed_login_attempts = AsyncMock(return_value=1)
    uow.users.reset_failed_login_attempts = AsyncMock(return_value=True)
    uow.users.set_locked_until = AsyncMock(return_value=True)
    uow.users.set_remember_token_hash = AsyncMock(return_value=True)

    for name in ("password_reset_tokens", "email_verification_tokens"):
        tokens = MagicMock()
        tokens.create = AsyncMock(side_effect=lambda token: token)
        tokens.get_by_token_hash = AsyncMock(return_value=None)
        tokens.delete_by_subject = AsyncMock(return_value=0)
        tokens.delete_by_token_hash = AsyncMock(return_value=1)
        tokens.delete_expired = AsyncMock(return_value=0)
        tokens.get_by_user_id = AsyncMock(return_value=None)
        setattr(uow, name, tokens)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock()
    uow.audit_events.list_recent = AsyncMock(return_value=[])
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hasher():
    # Low bcrypt cost keeps the suite fast
    return PasswordHasher(algorithm="bcrypt", bcrypt_rounds=4)


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def mailer():
    return LoggingMailer()


@pytest.fixture
def session_backend(clock):
    return MemorySessionBackend(clock=clock)


@pytest.fixture
def make_context(session_backend):
    """Build a request context, optionally carrying cookies from a previous response"""

    def factory(cookies=None, ip="10.0.0.1"):
        jar = CookieJar(cookies)
        session = SessionManager(session_backend, jar)
        return RequestContext(session=session, cookies=jar, ip=ip)

    return factory
