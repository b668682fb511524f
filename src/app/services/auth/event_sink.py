from abc import ABC, abstractmethod

from src.domain.events import DomainEvent


class IEventSink(ABC):
    """Receives account-security events emitted by the auth services"""

    @abstractmethod
    async def emit(self, event: DomainEvent) -> None:
        """Publish an event"""
        pass
