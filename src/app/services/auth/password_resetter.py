import logging
from datetime import datetime
from typing import Any, Optional

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.mailer import EmailMessage, IMailer
from src.app.services.auth.password_hasher import PasswordHasher
from src.app.services.auth.token_manager import SingleUseTokenManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import PasswordResetToken
from src.domain.events import PasswordResetCompletedEvent, PasswordResetRequestedEvent
from src.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

RESET_EMAIL_TEMPLATE = """Hello,

You have requested to reset your password for {site_name}.

Open the following link to choose a new password:

{link}

This link will expire in {minutes} minutes.

If you did not request a password reset, please ignore this email.
"""

RESET_EMAIL_HTML_TEMPLATE = """<p>You have requested to reset your password for {site_name}.</p>
<p><a href="{link}">Reset Password</a></p>
<p>This link will expire in {minutes} minutes.</p>
<p>If you did not request a password reset, please ignore this email.</p>
"""


class PasswordResetter(SingleUseTokenManager[PasswordResetToken]):
    """
    Forgotten-password flow.

    Business Rules:
    - request_reset() always reports success so callers cannot discover which
      emails are registered; no token is created for unknown addresses
    - Tokens are keyed by email and expire after 60 minutes by default
    - A successful reset also clears lockout state and the remember-me hash
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mailer: IMailer,
        hasher: PasswordHasher,
        reset_url: str,
        site_name: str = "CMS",
        sender: Optional[str] = None,
        expiration_minutes: int = 60,
        events: Optional[IEventSink] = None,
    ):
        super().__init__(
            uow,
            mailer,
            base_url=reset_url,
            site_name=site_name,
            sender=sender,
            expiration_minutes=expiration_minutes,
            events=events,
        )
        self.hasher = hasher

    @property
    def tokens(self) -> IPasswordResetTokenRepository:
        return self.uow.password_reset_tokens

    def _build_token(self, subject: str, token_hash: str, expires_at: datetime) -> PasswordResetToken:
        return PasswordResetToken(email=subject, token_hash=token_hash, expires_at=expires_at)

    def _build_message(self, recipient: str, link: str, **context: Any) -> EmailMessage:
        values = {"site_name": self.site_name, "link": link, "minutes": self.expiration_minutes}
        return EmailMessage(
            to=recipient,
            subject=f"Password Reset Request - {self.site_name}",
            body=RESET_EMAIL_TEMPLATE.format(**values),
            html_body=RESET_EMAIL_HTML_TEMPLATE.format(**values),
            sender=self.sender,
        )

    async def request_reset(self, email: str, ip: str = "unknown") -> bool:
        """
        Email a reset link if the address belongs to a user.

        Returns:
            Always True

        Raises:
            EmailDeliveryError: the token was stored but the email could not be sent
        """
        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is None:
                logger.info("Password reset requested for unknown email")
                return True
            user_id, user_email = user.id, user.email
            await self.uow.commit()

        await self._issue(user_email, user_email)
        await self._emit(PasswordResetRequestedEvent(user_id, user_email, ip=ip))
        return True

    async def reset_password(
        self, plain_token: str, new_password: str, ip: str = "unknown"
    ) -> Result[None]:
        """
        Set a new password using a reset token.

        Errors:
            - INVALID_TOKEN: token missing, expired, or its user no longer exists
            - WEAK_PASSWORD: new password violates the policy (details list the rules)
        """
        async with self.uow:
            token = await self._find_valid(plain_token)
            if token is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid or expired reset token"))

            validation = self.hasher.validate(new_password)
            if validation.is_err():
                return validation

            user = await self.uow.users.get_by_email(token.email)
            if user is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid or expired reset token"))

            user.password_hash = self.hasher.hash(new_password)
            user.failed_login_attempts = 0
            user.locked_until = None
            user.remember_token_hash = None
            await self.uow.users.update(user)
            await self.tokens.delete_by_token_hash(token.token_hash)

            user_id = user.id
            await self.uow.commit()

        logger.info(f"Password reset completed for user {user_id}")
        await self._emit(PasswordResetCompletedEvent(user_id, ip=ip))
        return Return.ok()
