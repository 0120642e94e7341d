from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from config import config_schema
from errors import TransportFailure
from relay_manager import RelayManager
from server_data import ServerData
from session_registry import SessionRegistry


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.closed = False
        self.fail = fail

    def enqueue(self, packet: dict) -> None:
        if self.fail:
            raise TransportFailure("Outbound queue full")
        if self.closed:
            return
        self.sent.append(packet)

    def close(self) -> None:
        self.closed = True

    def events(self) -> list[str]:
        return [packet["event"] for packet in self.sent]

    def last(self, event: str) -> dict:
        return [packet for packet in self.sent if packet["event"] == event][-1]


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def spawn_payload(name: str = "Bob", **overrides) -> dict:
    data = {
        "name": name,
        "position": {"x": 0, "y": 0, "z": 0},
        "health": 100,
        "armor": 0,
        "money": 1000,
        "level": 1,
        "job": "Unemployed",
    }
    data.update(overrides)
    return {"event": "playerSpawn", "data": data}


@pytest.fixture
def config() -> dict:
    return config_schema({
        "server": {"max_players": 4},
        "relay": {"session_timeout": 30},
        "vehicles": {"max_vehicles": 5, "ttl": 60},
    })


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def data(config, monotonic) -> ServerData:
    server_data = ServerData(config)
    server_data.sessions = SessionRegistry(clock=monotonic)
    return server_data


@pytest.fixture
def manager(config, data, clock) -> RelayManager:
    return RelayManager(config, data, clock=clock)
