import logging
from typing import Callable, Iterable, List

from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.auth.event_sink import IEventSink
from src.domain.entities import AuditEvent
from src.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class AuditEventSink(IEventSink):
    """
    Persists every event as an AuditEvent row.

    Writes go through a dedicated session and are committed immediately, so
    failed logins are recorded even when the request's own transaction is
    rolled back.
    """

    def __init__(self, session_factory: Callable):
        self.session_factory = session_factory

    async def emit(self, event: DomainEvent) -> None:
        async with self.session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                audit = AuditEvent(
                    user_id=event.user_id,
                    action=event.name,
                    event_metadata=event.to_metadata(),
                    created_at=event.occurred_at,
                )
                await uow.audit_events.create(audit)
                await uow.commit()


class LoggingEventSink(IEventSink):
    """Writes events to the application log"""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    async def emit(self, event: DomainEvent) -> None:
        self.log.info(f"Event {event.name} user={event.user_id} {event.to_metadata()}")


class CompositeEventSink(IEventSink):
    """Fans an event out to several sinks in order"""

    def __init__(self, sinks: Iterable[IEventSink]):
        self.sinks = list(sinks)

    async def emit(self, event: DomainEvent) -> None:
        for sink in self.sinks:
            await sink.emit(event)


class RecordingEventSink(IEventSink):
    """Keeps emitted events in memory; handy in tests and local scripts"""

    def __init__(self):
        self.events: List[DomainEvent] = []

    async def emit(self, event: DomainEvent) -> None:
        self.events.append(event)

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def of_type(self, event_type: type) -> List[DomainEvent]:
        return [event for event in self.events if isinstance(event, event_type)]
