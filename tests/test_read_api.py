from __future__ import annotations

from http import HTTPStatus

import read_api
from tests.conftest import FakeTransport, spawn_payload


def test_stats_and_lists(manager, data) -> None:
    session = manager.session_connected(FakeTransport())
    manager.handle_packet(session.session_id, spawn_payload("Bob"))
    manager.handle_packet(session.session_id, {
        "event": "vehicleSpawn",
        "data": {"id": "v1", "model": "Adder", "position": {"x": 1, "y": 1, "z": 1}},
    })

    status, stats = read_api.route(data, "/api/stats")
    assert status == HTTPStatus.OK
    assert stats["totalPlayers"] == 1
    assert stats["totalVehicles"] == 1
    assert stats["maxPlayers"] == 4
    assert stats["serverVersion"] == "1.0.0"
    assert isinstance(stats["uptime"], int)

    _, players = read_api.route(data, "/api/players")
    assert players[0]["name"] == "Bob"
    assert players[0]["id"] == session.session_id
    assert "lastSeen" in players[0]

    _, vehicles = read_api.route(data, "/api/vehicles?owner=ignored")
    assert vehicles == [{
        "id": "v1",
        "model": "Adder",
        "position": {"x": 1.0, "y": 1.0, "z": 1.0},
        "owner": session.session_id,
        "locked": False,
        "health": 100,
        "fuel": 100,
    }]


def test_health(data) -> None:
    status, body = read_api.route(data, "/health")
    assert status == HTTPStatus.OK
    assert body["status"] == "OK"
    assert "timestamp" in body


def test_unknown_route(data) -> None:
    assert read_api.route(data, "/api/nope") == (HTTPStatus.NOT_FOUND, {"error": "Route not found"})
