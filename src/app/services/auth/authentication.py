"""
Credential authentication, lockout and remember-me.

Brute-force counters are only changed through the repository's atomic
operations; this service never reads a counter, adds one and writes it back.
"""

import hashlib
import logging
import secrets
import time
from datetime import timedelta
from typing import Callable, List, Optional
from uuid import UUID

from src.app.services.auth.csrf_token import CsrfTokenManager
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.password_hasher import PasswordHasher
from src.app.services.auth.request_context import RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import User, UserRole
from src.domain.events import (
    DomainEvent,
    LoginFailureReason,
    UserLockedOutEvent,
    UserLoginEvent,
    UserLoginFailedEvent,
    UserLogoutEvent,
)

logger = logging.getLogger(__name__)

REMEMBER_COOKIE = "remember_token"

SESSION_USER_ID = "user_id"
SESSION_USER_ROLE = "user_role"
SESSION_LOGIN_TIME = "login_time"


def hash_remember_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class Authentication:
    """
    Business Rules:
    - Unknown usernames still pay for a password hash (timing equalisation)
    - Locked and inactive accounts fail without touching the counters
    - The Nth consecutive failure (default 5) locks the account for 15 minutes
    - A successful login zeroes the counter and clears the lock
    - Remember-me cookies carry a random token; only its sha256 is stored
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        context: RequestContext,
        events: Optional[IEventSink] = None,
        csrf: Optional[CsrfTokenManager] = None,
        max_login_attempts: int = 5,
        lockout_minutes: int = 15,
        remember_me_days: int = 30,
        secure_cookies: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.uow = uow
        self.hasher = hasher
        self.context = context
        self.events = events
        self.csrf = csrf
        self.max_login_attempts = max_login_attempts
        self.lockout_minutes = lockout_minutes
        self.remember_me_days = remember_me_days
        self.secure_cookies = secure_cookies
        self._clock = clock
        self._user: Optional[User] = None

    @property
    def session(self):
        return self.context.session

    @property
    def cookies(self):
        return self.context.cookies

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    async def attempt(self, username: str, password: str, remember: bool = False) -> bool:
        """
        Check credentials and log the user in on success.

        Never raises for bad credentials; the reason is only visible in the
        emitted user.login_failed event.
        """
        pending: List[DomainEvent] = []

        async with self.uow:
            user = await self.uow.users.get_by_username(username)
            reason = await self._check_attempt(user, password, pending)
            if reason is None:
                await self._record_success(user, password)
            await self.uow.commit()

        for event in pending:
            await self._emit(event)

        if reason is not None:
            logger.info(f"Login failed for '{username}': {reason}")
            await self._emit(UserLoginFailedEvent(username, self.context.ip, reason))
            return False

        await self.login(user, remember)
        return True

    async def login(self, user: User, remember: bool = False) -> None:
        # New session ID on privilege change (session fixation)
        self.session.regenerate()
        self.session.set(SESSION_USER_ID, str(user.id))
        self.session.set(SESSION_USER_ROLE, UserRole(user.role).value)
        self.session.set(SESSION_LOGIN_TIME, self._clock())

        if self.csrf is not None:
            self.csrf.regenerate()

        if remember:
            await self._set_remember_token(user)

        self._user = user
        await self._emit(UserLoginEvent(user.id, user.username, self.context.ip, remember=remember))

    async def logout(self) -> Optional[UUID]:
        """
        End the session and revoke remember-me.

        Returns the ID of the user that was logged out, or None when nobody was.
        Never restores a login from the remember-me cookie on the way.
        """
        user_id = self._session_user_id()
        if user_id is None:
            user_id = await self._remember_token_user_id()

        login_time = self.session.get(SESSION_LOGIN_TIME)
        duration = self._clock() - login_time if login_time else 0.0

        if user_id is not None:
            async with self.uow:
                await self.uow.users.set_remember_token_hash(user_id, None)
                await self.uow.commit()

        self.session.destroy()
        if self.cookies.get(REMEMBER_COOKIE) is not None:
            self.cookies.expire(REMEMBER_COOKIE)
        self._user = None

        if user_id is not None:
            await self._emit(UserLogoutEvent(user_id, duration))
        return user_id

    # ------------------------------------------------------------------
    # Current user
    # ------------------------------------------------------------------

    async def check(self) -> bool:
        if self.session.has(SESSION_USER_ID):
            return True

        token = self.cookies.get(REMEMBER_COOKIE)
        if token:
            return await self.login_using_remember_token(token)
        return False

    async def login_using_remember_token(self, token: str) -> bool:
        async with self.uow:
            user = await self.uow.users.get_by_remember_token_hash(hash_remember_token(token))
            if user is None or not user.is_active():
                return False
            await self.uow.commit()

        # Rotates the remember-me token as well
        await self.login(user, remember=True)
        return True

    async def user(self) -> Optional[User]:
        if not await self.check():
            return None

        user_id = self._session_user_id()
        if user_id is None:
            return None
        if self._user is not None and self._user.id == user_id:
            return self._user

        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            await self.uow.commit()

        if user is None:
            logger.info(f"Session refers to missing user {user_id}; logging out")
            await self.logout()
            return None

        self._user = user
        return user

    async def id(self) -> Optional[UUID]:
        if not await self.check():
            return None
        return self._session_user_id()

    def validate_credentials(self, user: User, password: str) -> bool:
        return self.hasher.verify(password, user.password_hash)

    async def is_locked_out(self, username: str) -> bool:
        async with self.uow:
            user = await self.uow.users.get_by_username(username)
            locked = user is not None and user.is_locked_out()
            await self.uow.commit()
        return locked

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def has_role(self, role: str) -> bool:
        user = await self.user()
        return user is not None and UserRole(user.role).value == role

    async def is_admin(self) -> bool:
        return await self.has_role(UserRole.admin.value)

    async def is_editor_or_higher(self) -> bool:
        user = await self.user()
        return user is not None and user.role in (UserRole.admin, UserRole.editor)

    async def is_author_or_higher(self) -> bool:
        user = await self.user()
        return user is not None and user.role in (
            UserRole.admin,
            UserRole.editor,
            UserRole.author,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _check_attempt(
        self, user: Optional[User], password: str, pending: List[DomainEvent]
    ) -> Optional[str]:
        """Return a failure reason, or None when the credentials are good"""
        if user is None:
            self.hasher.dummy_verify(password)
            return LoginFailureReason.USER_NOT_FOUND

        if user.is_locked_out():
            return LoginFailureReason.ACCOUNT_LOCKED

        if not user.is_active():
            return LoginFailureReason.ACCOUNT_INACTIVE

        if self.validate_credentials(user, password):
            return None

        attempts = await self.uow.users.increment_failed_login_attempts(user.id)
        if attempts >= self.max_login_attempts:
            locked_until = utcnow() + timedelta(minutes=self.lockout_minutes)
            await self.uow.users.set_locked_until(user.id, locked_until)
            logger.warning(
                f"Account '{user.username}' locked until {locked_until.isoformat()} "
                f"after {attempts} failed attempts"
            )
            pending.append(UserLockedOutEvent(user.id, locked_until, attempts))

        return LoginFailureReason.INVALID_CREDENTIALS

    async def _record_success(self, user: User, password: str) -> None:
        await self.uow.users.reset_failed_login_attempts(user.id)

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = utcnow()
        if self.hasher.needs_rehash(user.password_hash):
            logger.info(f"Rehashing password for user {user.id}")
            user.password_hash = self.hasher.hash(password)
        await self.uow.users.update(user)

    async def _set_remember_token(self, user: User) -> None:
        token = secrets.token_hex(32)
        token_hash = hash_remember_token(token)

        async with self.uow:
            await self.uow.users.set_remember_token_hash(user.id, token_hash)
            await self.uow.commit()

        user.remember_token_hash = token_hash
        self.cookies.queue(
            REMEMBER_COOKIE,
            token,
            max_age=self.remember_me_days * 24 * 60 * 60,
            path="/",
            secure=self.secure_cookies,
            httponly=True,
        )

    async def _remember_token_user_id(self) -> Optional[UUID]:
        token = self.cookies.get(REMEMBER_COOKIE)
        if not token:
            return None
        async with self.uow:
            user = await self.uow.users.get_by_remember_token_hash(hash_remember_token(token))
            user_id = user.id if user is not None else None
            await self.uow.commit()
        return user_id

    def _session_user_id(self) -> Optional[UUID]:
        value = self.session.get(SESSION_USER_ID)
        return UUID(value) if value else None

    async def _emit(self, event: DomainEvent) -> None:
        if self.events is not None:
            await self.events.emit(event)
