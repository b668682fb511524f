import logging
import re
from typing import Optional

from src.app.services.auth.email_verifier import EmailVerifier
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.services.auth.password_hasher import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import User, UserRole, UserStatus
from src.domain.events import UserRegisteredEvent
from src.libs.result import Error, Result, Return
from .dtos import MemberInfo, RegisterMemberCommand, RegisterMemberResponse

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"[a-zA-Z0-9_]+")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50


class RegisterMemberUseCase:
    """
    Register Member Use Case

    Business Logic:
    1. Refuse when registration is disabled
    2. Validate username (3-50 chars, letters/digits/underscore), password
       confirmation and password strength
    3. Reject taken usernames and emails
    4. Create the user with the default role; when email verification is
       required the account starts inactive and unverified
    5. Send the verification email; a delivery failure is logged and does not
       fail registration (the member can request a resend)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        verifier: EmailVerifier,
        events: Optional[IEventSink] = None,
        require_email_verification: bool = True,
        registration_enabled: bool = True,
        default_role: UserRole = UserRole.subscriber,
    ):
        self.uow = uow
        self.hasher = hasher
        self.verifier = verifier
        self.events = events
        self.require_email_verification = require_email_verification
        self.registration_enabled = registration_enabled
        self.default_role = default_role

    async def execute(self, command: RegisterMemberCommand) -> Result[RegisterMemberResponse]:
        """
        Errors:
            - REGISTRATION_DISABLED
            - INVALID_USERNAME
            - PASSWORD_MISMATCH
            - WEAK_PASSWORD (details list the violated rules)
            - USERNAME_TAKEN
            - EMAIL_ALREADY_EXISTS
        """
        if not self.registration_enabled:
            return Return.err(
                Error("REGISTRATION_DISABLED", "User registration is currently disabled.")
            )

        validation = self._validate(command)
        if validation.is_err():
            return validation

        async with self.uow:
            if await self.uow.users.get_by_username(command.username):
                return Return.err(Error("USERNAME_TAKEN", "Username is already taken."))
            if await self.uow.users.get_by_email(command.email):
                return Return.err(Error("EMAIL_ALREADY_EXISTS", "Email is already registered."))

            verify = self.require_email_verification
            user = User(
                username=command.username,
                email=command.email,
                password_hash=self.hasher.hash(command.password),
                role=self.default_role,
                status=UserStatus.inactive if verify else UserStatus.active,
                email_verified=not verify,
            )
            user = await self.uow.users.create(user)
            await self.uow.commit()

        logger.info(f"Registered new member '{user.username}'")

        sent = False
        if self.require_email_verification:
            try:
                sent = await self.verifier.send_verification_email(user)
            except EmailDeliveryError as exc:
                logger.warning(f"Verification email for '{user.username}' not sent: {exc}")

        if self.events is not None:
            await self.events.emit(UserRegisteredEvent(user.id, user.username, user.email))

        return Return.ok(
            RegisterMemberResponse(
                user=MemberInfo.from_user(user),
                verification_required=self.require_email_verification,
                verification_email_sent=sent,
            )
        )

    def _validate(self, command: RegisterMemberCommand) -> Result[None]:
        username = command.username
        if not username:
            return Return.err(Error("INVALID_USERNAME", "Username is required."))
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            return Return.err(
                Error("INVALID_USERNAME", "Username must be between 3 and 50 characters.")
            )
        if not USERNAME_RE.fullmatch(username):
            return Return.err(
                Error(
                    "INVALID_USERNAME",
                    "Username can only contain letters, numbers, and underscores.",
                )
            )

        if command.password != command.password_confirmation:
            return Return.err(Error("PASSWORD_MISMATCH", "Passwords do not match."))

        return self.hasher.validate(command.password)
