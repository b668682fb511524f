import logging
from typing import List

from src.app.services.auth.mailer import EmailMessage, IMailer

logger = logging.getLogger(__name__)


class LoggingMailer(IMailer):
    """
    Development transport: logs the recipient and subject instead of delivering.

    Bodies carry live tokens, so they are kept in ``outbox`` rather than logged.
    """

    def __init__(self, outbox_size: int = 100):
        self.outbox_size = outbox_size
        self.outbox: List[EmailMessage] = []

    async def send(self, message: EmailMessage) -> bool:
        logger.info(f"[mail] to={message.to} subject={message.subject!r}")
        self.outbox.append(message)
        if len(self.outbox) > self.outbox_size:
            del self.outbox[0]
        return True
