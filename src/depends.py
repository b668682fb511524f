from functools import lru_cache

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.database_rate_limit_storage import DatabaseRateLimitStorage
from src.adapter.services.event_sinks import AuditEventSink, CompositeEventSink, LoggingEventSink
from src.adapter.services.logging_mailer import LoggingMailer
from src.adapter.services.memory_rate_limit_storage import MemoryRateLimitStorage
from src.adapter.services.memory_session_backend import MemorySessionBackend
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.services.auth.authentication import Authentication
from src.app.services.auth.cookie_jar import CookieJar
from src.app.services.auth.csrf_token import CsrfTokenManager
from src.app.services.auth.email_verifier import EmailVerifier
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.mailer import IMailer
from src.app.services.auth.password_hasher import PasswordHasher
from src.app.services.auth.password_resetter import PasswordResetter
from src.app.services.auth.rate_limit_storage import IRateLimitStorage
from src.app.services.auth.request_context import RequestContext
from src.app.services.auth.resend_verification_throttle import ResendVerificationThrottle
from src.app.services.auth.session_backend import ISessionBackend
from src.app.services.auth.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import User
from src.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Process-wide collaborators
session_backend = MemorySessionBackend()
mailer = LoggingMailer()
memory_rate_limit_storage = MemoryRateLimitStorage()


def get_session_factory():
    return AsyncSessionLocal


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_session_backend() -> ISessionBackend:
    return session_backend


def get_mailer() -> IMailer:
    return mailer


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(
        algorithm=ApplicationConfig.PASSWORD_ALGORITHM,
        min_length=ApplicationConfig.PASSWORD_MIN_LENGTH,
        require_uppercase=ApplicationConfig.PASSWORD_REQUIRE_UPPERCASE,
        require_lowercase=ApplicationConfig.PASSWORD_REQUIRE_LOWERCASE,
        require_numbers=ApplicationConfig.PASSWORD_REQUIRE_NUMBERS,
        require_special_chars=ApplicationConfig.PASSWORD_REQUIRE_SPECIAL_CHARS,
    )


def get_event_sink(session_factory=Depends(get_session_factory)) -> IEventSink:
    return CompositeEventSink([LoggingEventSink(), AuditEventSink(session_factory)])


def get_rate_limit_storage(session_factory=Depends(get_session_factory)) -> IRateLimitStorage:
    if ApplicationConfig.RATE_LIMIT_BACKEND == "memory":
        return memory_rate_limit_storage
    return DatabaseRateLimitStorage(session_factory)


def get_request_context(
    request: Request, backend: ISessionBackend = Depends(get_session_backend)
) -> RequestContext:
    """
    Build the per-request session and cookie jar.

    The context is parked on ``request.state`` so the cookie middleware can
    copy queued cookies onto whatever response the request ends with.
    """
    cookies = CookieJar(request.cookies)
    session = SessionManager(
        backend,
        cookies,
        cookie_name=ApplicationConfig.SESSION_COOKIE_NAME,
        lifetime=ApplicationConfig.SESSION_LIFETIME,
        secure=ApplicationConfig.SESSION_COOKIE_SECURE,
    )
    context = RequestContext(
        session=session,
        cookies=cookies,
        ip=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent"),
    )
    request.state.auth_context = context
    return context


def get_csrf_manager(context: RequestContext = Depends(get_request_context)) -> CsrfTokenManager:
    return CsrfTokenManager(context.session)


def get_authentication(
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    context: RequestContext = Depends(get_request_context),
    events: IEventSink = Depends(get_event_sink),
    csrf: CsrfTokenManager = Depends(get_csrf_manager),
) -> Authentication:
    return Authentication(
        uow,
        hasher,
        context,
        events=events,
        csrf=csrf,
        max_login_attempts=ApplicationConfig.MAX_LOGIN_ATTEMPTS,
        lockout_minutes=ApplicationConfig.LOCKOUT_MINUTES,
        remember_me_days=ApplicationConfig.REMEMBER_ME_DAYS,
        secure_cookies=ApplicationConfig.SESSION_COOKIE_SECURE,
    )


def get_password_resetter(
    uow: UnitOfWork = Depends(get_unit_of_work),
    mail: IMailer = Depends(get_mailer),
    hasher: PasswordHasher = Depends(get_password_hasher),
    events: IEventSink = Depends(get_event_sink),
) -> PasswordResetter:
    return PasswordResetter(
        uow,
        mail,
        hasher,
        reset_url=ApplicationConfig.PASSWORD_RESET_URL,
        site_name=ApplicationConfig.SITE_NAME,
        sender=ApplicationConfig.MAIL_FROM,
        expiration_minutes=ApplicationConfig.TOKEN_EXPIRATION_MINUTES,
        events=events,
    )


def get_email_verifier(
    uow: UnitOfWork = Depends(get_unit_of_work),
    mail: IMailer = Depends(get_mailer),
    events: IEventSink = Depends(get_event_sink),
) -> EmailVerifier:
    return EmailVerifier(
        uow,
        mail,
        verification_url=ApplicationConfig.EMAIL_VERIFICATION_URL,
        site_name=ApplicationConfig.SITE_NAME,
        sender=ApplicationConfig.MAIL_FROM,
        expiration_minutes=ApplicationConfig.TOKEN_EXPIRATION_MINUTES,
        events=events,
    )


def get_resend_throttle(
    storage: IRateLimitStorage = Depends(get_rate_limit_storage),
) -> ResendVerificationThrottle:
    return ResendVerificationThrottle(
        storage,
        ip_limit=ApplicationConfig.RESEND_IP_LIMIT,
        ip_window=ApplicationConfig.RESEND_IP_WINDOW,
        email_limit=ApplicationConfig.RESEND_EMAIL_LIMIT,
        email_window=ApplicationConfig.RESEND_EMAIL_WINDOW,
    )


async def get_current_user(auth: Authentication = Depends(get_authentication)) -> User:
    """
    Dependency resolving the logged-in user from the session or remember-me cookie.

    Raises:
        ClientError: 401 if nobody is logged in
    """
    user = await auth.user()
    if user is None:
        raise ClientError(
            Error("NOT_AUTHENTICATED", "Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return user
