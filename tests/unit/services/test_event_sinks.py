import logging
from datetime import datetime
from uuid import uuid4

import pytest

from src.adapter.services.event_sinks import CompositeEventSink, LoggingEventSink, RecordingEventSink
from src.domain.events import (
    UserLockedOutEvent,
    UserLoginEvent,
    UserLoginFailedEvent,
)


def test_event_names_and_metadata():
    user_id = uuid4()
    locked = UserLockedOutEvent(user_id, datetime(2026, 1, 1, 12, 0), 5)
    failed = UserLoginFailedEvent("ghost", "10.0.0.1", "user_not_found")

    assert locked.name == "user.locked_out"
    assert locked.user_id == user_id
    assert locked.to_metadata() == {"locked_until": "2026-01-01T12:00:00", "failed_attempts": 5}
    assert failed.user_id is None
    assert failed.to_metadata() == {
        "identifier": "ghost",
        "ip": "10.0.0.1",
        "reason": "user_not_found",
    }


@pytest.mark.asyncio
async def test_composite_fans_out_in_order(caplog):
    first, second = RecordingEventSink(), RecordingEventSink()
    sink = CompositeEventSink([first, LoggingEventSink(), second])
    event = UserLoginEvent(uuid4(), "alice", "10.0.0.1")

    with caplog.at_level(logging.INFO):
        await sink.emit(event)

    assert first.events == [event]
    assert second.of_type(UserLoginEvent) == [event]
    assert second.of_type(UserLoginFailedEvent) == []
    assert "user.login" in caplog.text
