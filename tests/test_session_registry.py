from __future__ import annotations

from session_registry import SessionRegistry, SessionState
from tests.conftest import FakeMonotonic, FakeTransport


def test_connect_allocates_unique_sessions() -> None:
    registry = SessionRegistry()
    first = registry.on_connect(FakeTransport())
    second = registry.on_connect(FakeTransport())

    assert first.session_id != second.session_id
    assert first.state == SessionState.CONNECTED
    assert len(registry) == 2


def test_identify_transitions_once() -> None:
    registry = SessionRegistry()
    session = registry.on_connect(FakeTransport())

    assert registry.identified_sessions() == []
    registry.on_identify(session.session_id)
    registry.on_identify(session.session_id)

    assert session.state == SessionState.IDENTIFIED
    assert registry.identified_sessions() == [session]


def test_identify_unknown_session() -> None:
    assert SessionRegistry().on_identify("missing") is None


def test_disconnect_is_idempotent() -> None:
    registry = SessionRegistry()
    session = registry.on_connect(FakeTransport())

    assert registry.on_disconnect(session.session_id) is session
    assert session.state == SessionState.DISCONNECTED
    assert registry.on_disconnect(session.session_id) is None
    assert session.session_id not in registry


def test_reconnect_gets_a_new_session() -> None:
    registry = SessionRegistry()
    transport = FakeTransport()
    first = registry.on_connect(transport)
    registry.on_disconnect(first.session_id)

    second = registry.on_connect(transport)
    assert second.session_id != first.session_id
    assert second.state == SessionState.CONNECTED


def test_expired_sessions_follow_last_activity() -> None:
    clock = FakeMonotonic()
    registry = SessionRegistry(clock=clock)
    idle = registry.on_connect(FakeTransport())
    busy = registry.on_connect(FakeTransport())

    clock.now += 20
    registry.touch(busy.session_id)
    clock.now += 15

    assert registry.expired_sessions(30) == [idle]
    assert registry.expired_sessions(0) == []
