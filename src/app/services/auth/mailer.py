from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmailMessage:
    """A fully rendered email, ready to hand to a transport"""

    to: str
    subject: str
    body: str
    html_body: Optional[str] = None
    sender: Optional[str] = None


class IMailer(ABC):
    """Outgoing mail transport interface"""

    @abstractmethod
    async def send(self, message: EmailMessage) -> bool:
        """Send a message; returns False (or raises) when delivery failed"""
        pass
