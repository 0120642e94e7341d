"""
GTA Relay
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

from datetime import datetime, timezone
from http import HTTPStatus

from server_data import SERVER_VERSION, ServerData


def health(data: ServerData) -> dict:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": data.uptime,
    }


def players(data: ServerData) -> list:
    return [player.to_dict() for player in data.store.snapshot_players()]


def vehicles(data: ServerData) -> list:
    return [vehicle.to_dict() for vehicle in data.store.snapshot_vehicles()]


def stats(data: ServerData) -> dict:
    return {
        "totalPlayers": data.store.player_count,
        "totalVehicles": data.store.vehicle_count,
        "uptime": data.uptime,
        "maxPlayers": data.max_players,
        "serverVersion": SERVER_VERSION,
    }


ROUTES = {
    "/health": health,
    "/api/players": players,
    "/api/vehicles": vehicles,
    "/api/stats": stats,
}


def route(data: ServerData, path: str) -> tuple[HTTPStatus, object]:
    """Resolve a GET path to a status and a JSON-serialisable body. Query strings are ignored."""
    handler = ROUTES.get(path.split("?", 1)[0])
    if handler is None:
        return HTTPStatus.NOT_FOUND, {"error": "Route not found"}
    return HTTPStatus.OK, handler(data)
