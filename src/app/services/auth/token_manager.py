"""
Single-use, time-bound email tokens.

The plaintext token (64 hex chars) only ever exists in the emailed link; the
database stores its SHA-256 hash. Subclasses decide what a token is issued
for (the subject) and what the email says.
"""

import hashlib
import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Generic, Optional, TypeVar
from urllib.parse import quote

from src.app.repositories.token_repository import ITokenRepository
from src.app.services.auth.event_sink import IEventSink
from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.services.auth.mailer import EmailMessage, IMailer
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.events import DomainEvent

logger = logging.getLogger(__name__)

TToken = TypeVar("TToken")


def hash_token(plain_token: str) -> str:
    return hashlib.sha256(plain_token.encode()).hexdigest()


def generate_plain_token() -> str:
    """32 random bytes rendered as 64 hex characters"""
    return secrets.token_hex(32)


class SingleUseTokenManager(ABC, Generic[TToken]):
    """
    Business Rules:
    - Issuing a token deletes every earlier token for the same subject
    - The token row is committed before the email is sent
    - Missing and expired tokens are indistinguishable to callers
    - Consuming a token deletes it
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mailer: IMailer,
        base_url: str,
        site_name: str = "CMS",
        sender: Optional[str] = None,
        expiration_minutes: int = 60,
        events: Optional[IEventSink] = None,
    ):
        self.uow = uow
        self.mailer = mailer
        self.base_url = base_url
        self.site_name = site_name
        self.sender = sender
        self.expiration_minutes = expiration_minutes
        self.events = events

    @property
    @abstractmethod
    def tokens(self) -> ITokenRepository:
        """Token repository on the open unit of work"""
        pass

    @abstractmethod
    def _build_token(self, subject: Any, token_hash: str, expires_at: datetime) -> TToken:
        pass

    @abstractmethod
    def _build_message(self, recipient: str, link: str, **context: Any) -> EmailMessage:
        pass

    def build_link(self, plain_token: str) -> str:
        return f"{self.base_url}?token={quote(plain_token)}"

    async def validate_token(self, plain_token: str) -> Optional[TToken]:
        """Return the stored token if it exists and has not expired"""
        async with self.uow:
            token = await self._find_valid(plain_token)
            await self.uow.commit()
            return token

    async def cleanup_expired_tokens(self) -> int:
        async with self.uow:
            deleted = await self.tokens.delete_expired(utcnow())
            await self.uow.commit()

        if deleted:
            logger.info(f"{type(self).__name__}: removed {deleted} expired tokens")
        return deleted

    async def _issue(self, subject: Any, recipient: str, **context: Any) -> str:
        plain_token = generate_plain_token()
        expires_at = utcnow() + timedelta(minutes=self.expiration_minutes)

        async with self.uow:
            await self.tokens.delete_by_subject(subject)
            await self.tokens.create(self._build_token(subject, hash_token(plain_token), expires_at))
            await self.uow.commit()

        message = self._build_message(recipient, self.build_link(plain_token), **context)
        await self._send(message)
        return plain_token

    async def _find_valid(self, plain_token: str) -> Optional[TToken]:
        """Look up a live token; the unit of work must already be open"""
        if not plain_token:
            return None

        token = await self.tokens.get_by_token_hash(hash_token(plain_token))
        if token is None or token.is_expired():
            return None
        return token

    async def _send(self, message: EmailMessage) -> None:
        try:
            sent = await self.mailer.send(message)
        except EmailDeliveryError:
            logger.error(f"Error sending email to {message.to}")
            raise
        except Exception as exc:
            logger.error(f"Error sending email to {message.to}: {exc}")
            raise EmailDeliveryError(message.to, str(exc)) from exc

        if not sent:
            logger.error(f"Mail transport refused email to {message.to}")
            raise EmailDeliveryError(message.to)

        logger.info(f"Sent '{message.subject}' to {message.to}")

    async def _emit(self, event: DomainEvent) -> None:
        if self.events is not None:
            await self.events.emit(event)
