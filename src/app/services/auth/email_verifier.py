import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from src.app.repositories.email_verification_token_repository import (
    IEmailVerificationTokenRepository,
)
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.mailer import EmailMessage, IMailer
from src.app.services.auth.token_manager import SingleUseTokenManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import EmailVerificationToken, User, UserStatus
from src.domain.events import EmailVerifiedEvent

logger = logging.getLogger(__name__)

VERIFICATION_EMAIL_TEMPLATE = """Hello {username},

Thanks for signing up for {site_name}. Please confirm your email address:

{link}

This link will expire in {minutes} minutes.

If you did not create an account, you can ignore this email.
"""

VERIFICATION_EMAIL_HTML_TEMPLATE = """<p>Hello {username},</p>
<p>Thanks for signing up for {site_name}. Please confirm your email address:</p>
<p><a href="{link}">Verify Email Address</a></p>
<p>This link will expire in {minutes} minutes.</p>
"""


class EmailVerifier(SingleUseTokenManager[EmailVerificationToken]):
    """
    Email ownership verification.

    Business Rules:
    - One live token per user; resending replaces it
    - Verifying an inactive account also activates it
    - Verifying an already verified account succeeds and consumes the token
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mailer: IMailer,
        verification_url: str,
        site_name: str = "CMS",
        sender: Optional[str] = None,
        expiration_minutes: int = 60,
        events: Optional[IEventSink] = None,
    ):
        super().__init__(
            uow,
            mailer,
            base_url=verification_url,
            site_name=site_name,
            sender=sender,
            expiration_minutes=expiration_minutes,
            events=events,
        )

    @property
    def tokens(self) -> IEmailVerificationTokenRepository:
        return self.uow.email_verification_tokens

    def _build_token(
        self, subject: UUID, token_hash: str, expires_at: datetime
    ) -> EmailVerificationToken:
        return EmailVerificationToken(user_id=subject, token_hash=token_hash, expires_at=expires_at)

    def _build_message(self, recipient: str, link: str, **context: Any) -> EmailMessage:
        values = {
            "username": context.get("username", ""),
            "site_name": self.site_name,
            "link": link,
            "minutes": self.expiration_minutes,
        }
        return EmailMessage(
            to=recipient,
            subject=f"Verify Your Email Address - {self.site_name}",
            body=VERIFICATION_EMAIL_TEMPLATE.format(**values),
            html_body=VERIFICATION_EMAIL_HTML_TEMPLATE.format(**values),
            sender=self.sender,
        )

    async def send_verification_email(self, user: User) -> bool:
        """
        Issue a fresh token for the user and email the link.

        Raises:
            EmailDeliveryError: the token was stored but the email could not be sent
        """
        await self._issue(user.id, user.email, username=user.username)
        return True

    async def verify_email(self, plain_token: str) -> bool:
        async with self.uow:
            token = await self._find_valid(plain_token)
            if token is None:
                return False

            user = await self.uow.users.get_by_id(token.user_id)
            if user is None:
                return False

            if user.email_verified:
                await self.tokens.delete_by_token_hash(token.token_hash)
                await self.uow.commit()
                return True

            user.email_verified = True
            if user.status == UserStatus.inactive:
                user.status = UserStatus.active
            await self.uow.users.update(user)
            await self.tokens.delete_by_token_hash(token.token_hash)

            user_id, username, email = user.id, user.username, user.email
            await self.uow.commit()

        logger.info(f"Email verified for user: {username}")
        await self._emit(EmailVerifiedEvent(user_id, email))
        return True

    async def resend_verification(self, email: str) -> bool:
        """
        Returns:
            True when an email was sent or the address is unknown (no enumeration),
            False when the account is already verified
        """
        async with self.uow:
            user = await self.uow.users.get_by_email(email)
            if user is None:
                return True
            if user.email_verified:
                return False
            await self.uow.commit()

        return await self.send_verification_email(user)
