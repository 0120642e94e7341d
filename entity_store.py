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

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Optional

from errors import BadRequest, NotFound

STAT_MIN = 0
STAT_MAX = 100

PLAYER_FIELDS = ("name", "position", "health", "armor", "money", "level", "job")
VEHICLE_FIELDS = ("model", "position")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclasses.dataclass(frozen=True)
class Vector3:
    x: float
    y: float
    z: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclasses.dataclass(frozen=True)
class Player:
    id: str  # session id
    name: str
    position: Vector3
    health: int
    armor: int
    money: int
    level: int
    job: str
    last_seen: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_dict(),
            "health": self.health,
            "armor": self.armor,
            "money": self.money,
            "level": self.level,
            "job": self.job,
            "lastSeen": self.last_seen.isoformat(),
        }


@dataclasses.dataclass(frozen=True)
class Vehicle:
    id: str  # client supplied
    model: str
    position: Vector3
    owner: Optional[str]  # player id, weak reference
    locked: bool
    health: int
    fuel: int
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "model": self.model,
            "position": self.position.to_dict(),
            "owner": self.owner,
            "locked": self.locked,
            "health": self.health,
            "fuel": self.fuel,
        }


class EntityStore:
    """
    Authoritative in-memory record of connected players and spawned vehicles.

    Records are frozen; every write replaces the stored value, so anything handed
    out by the snapshot methods stays a point-in-time copy.
    Only the relay manager writes to the store.
    """

    def __init__(self, max_vehicles: int = 100, max_money: int = 999_999_999):
        self._players: dict[str, Player] = dict()
        self._vehicles: dict[str, Vehicle] = dict()
        self._max_vehicles = max_vehicles
        self._max_money = max_money

    @property
    def player_count(self) -> int:
        return len(self._players)

    @property
    def vehicle_count(self) -> int:
        return len(self._vehicles)

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return self._vehicles.get(vehicle_id)

    def _validate_player_fields(self, fields: dict) -> dict:
        unknown = set(fields) - set(PLAYER_FIELDS) - {"last_seen"}
        if unknown:
            raise BadRequest(f"Unknown player fields: {sorted(unknown)}")
        validated = dict(fields)
        if "name" in validated:
            if not isinstance(validated["name"], str) or not validated["name"].strip():
                raise BadRequest("Player name must not be empty")
        for stat in ("health", "armor"):
            if stat in validated:
                validated[stat] = clamp(int(validated[stat]), STAT_MIN, STAT_MAX)
        if "money" in validated:
            validated["money"] = clamp(int(validated["money"]), 0, self._max_money)
        return validated

    def upsert_player(self, player_id: str, fields: dict) -> Player:
        validated = self._validate_player_fields(fields)
        validated.setdefault("last_seen", utc_now())

        existing = self._players.get(player_id)
        if existing is None:
            missing = [name for name in PLAYER_FIELDS if name not in validated]
            if missing:
                raise BadRequest(f"Missing player fields: {missing}")
            player = Player(id=player_id, **validated)
            logging.debug(f"Player {player_id=} created as {player.name!r}")
        else:
            player = dataclasses.replace(existing, **validated)

        self._players[player_id] = player
        return player

    def adjust_money(self, player_id: str, delta: int, **fields) -> Player:
        existing = self._players.get(player_id)
        if existing is None:
            raise NotFound(f"Player {player_id} does not exist")
        return self.upsert_player(player_id, {**fields, "money": existing.money + delta})

    def remove_player(self, player_id: str) -> Optional[Player]:
        return self._players.pop(player_id, None)

    def upsert_vehicle(self, vehicle_id: str, fields: dict) -> Vehicle:
        unknown = set(fields) - set(VEHICLE_FIELDS) - {"owner", "locked", "health", "fuel", "updated_at"}
        if unknown:
            raise BadRequest(f"Unknown vehicle fields: {sorted(unknown)}")
        validated = dict(fields)
        for stat in ("health", "fuel"):
            if stat in validated:
                validated[stat] = clamp(int(validated[stat]), STAT_MIN, STAT_MAX)
        validated.setdefault("updated_at", utc_now())

        existing = self._vehicles.get(vehicle_id)
        if existing is None:
            if len(self._vehicles) >= self._max_vehicles:
                raise BadRequest(f"Vehicle capacity of {self._max_vehicles} reached")
            missing = [name for name in VEHICLE_FIELDS if name not in validated]
            if missing:
                raise BadRequest(f"Missing vehicle fields: {missing}")
            validated.setdefault("owner", None)
            validated.setdefault("locked", False)
            validated.setdefault("health", STAT_MAX)
            validated.setdefault("fuel", STAT_MAX)
            vehicle = Vehicle(id=vehicle_id, **validated)
        else:
            new_owner = validated.get("owner", existing.owner)
            if existing.owner is not None and new_owner != existing.owner:
                raise BadRequest(f"Vehicle {vehicle_id} is owned by another player")
            vehicle = dataclasses.replace(existing, **validated)

        self._vehicles[vehicle_id] = vehicle
        return vehicle

    def remove_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return self._vehicles.pop(vehicle_id, None)

    def release_vehicles(self, owner_id: str, at: Optional[datetime] = None) -> list[str]:
        released = []
        at = at or utc_now()
        for vehicle_id, vehicle in list(self._vehicles.items()):
            if vehicle.owner == owner_id:
                self._vehicles[vehicle_id] = dataclasses.replace(vehicle, owner=None, updated_at=at)
                released.append(vehicle_id)
        return released

    def expire_vehicles(self, cutoff: datetime) -> list[str]:
        """Remove ownerless vehicles untouched since cutoff."""
        expired = [
            vehicle_id for vehicle_id, vehicle in self._vehicles.items()
            if vehicle.owner is None and vehicle.updated_at < cutoff
        ]
        for vehicle_id in expired:
            del self._vehicles[vehicle_id]
        return expired

    def snapshot_players(self) -> tuple[Player, ...]:
        return tuple(self._players.values())

    def snapshot_vehicles(self) -> tuple[Vehicle, ...]:
        return tuple(self._vehicles.values())
