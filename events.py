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
import math
from datetime import datetime
from typing import Iterable, Union

import voluptuous.error
from voluptuous import Schema, Required, Optional, All, Length, In, Invalid, REMOVE_EXTRA

from entity_store import Player, Vector3, Vehicle
from errors import BadRequest, RelayError

CLIENT_CHAT_TYPES = ("chat", "ooc", "me", "do")
CHAT_TYPES = CLIENT_CHAT_TYPES + ("admin",)


def number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise Invalid("expected a number")
    if not math.isfinite(value):
        raise Invalid("expected a finite number")
    return float(value)


def integer(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise Invalid("expected an integer")
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise Invalid("expected an integer")
    return int(value)


def vector(value) -> Vector3:
    position = Schema({
        Required('x'): number,
        Required('y'): number,
        Required('z'): number,
    }, extra=REMOVE_EXTRA)(value)
    return Vector3(**position)


NonEmptyStr = All(str, Length(min=1))


@dataclasses.dataclass(frozen=True)
class PlayerSpawn:
    name: str
    position: Vector3
    health: int
    armor: int
    money: int
    level: int
    job: str


@dataclasses.dataclass(frozen=True)
class PlayerMove:
    position: Vector3


@dataclasses.dataclass(frozen=True)
class ChatMessage:
    message: str
    type: str = "chat"


@dataclasses.dataclass(frozen=True)
class VehicleSpawn:
    id: str
    model: str
    position: Vector3


@dataclasses.dataclass(frozen=True)
class VehicleDespawn:
    id: str


@dataclasses.dataclass(frozen=True)
class StartJob:
    job: str
    salary: int


InboundEvent = Union[PlayerSpawn, PlayerMove, ChatMessage, VehicleSpawn, VehicleDespawn, StartJob]

# event name -> (variant, payload schema)
INBOUND_EVENTS = {
    "playerSpawn": (PlayerSpawn, Schema({
        Required('name'): NonEmptyStr,
        Required('position'): vector,
        Required('health'): integer,
        Required('armor'): integer,
        Required('money'): integer,
        Required('level'): integer,
        Required('job'): str,
    }, extra=REMOVE_EXTRA)),
    "playerMove": (PlayerMove, Schema({
        Required('position'): vector,
    }, extra=REMOVE_EXTRA)),
    "chatMessage": (ChatMessage, Schema({
        Required('message'): NonEmptyStr,
        Optional('type', default="chat"): In(CLIENT_CHAT_TYPES),
    }, extra=REMOVE_EXTRA)),
    "vehicleSpawn": (VehicleSpawn, Schema({
        Required('id'): NonEmptyStr,
        Required('model'): NonEmptyStr,
        Required('position'): vector,
    }, extra=REMOVE_EXTRA)),
    "vehicleDespawn": (VehicleDespawn, Schema({
        Required('id'): NonEmptyStr,
    }, extra=REMOVE_EXTRA)),
    "startJob": (StartJob, Schema({
        Required('job'): NonEmptyStr,
        Required('salary'): integer,
    }, extra=REMOVE_EXTRA)),
}


def parse_event(packet: dict) -> InboundEvent:
    """
    Turn a decoded frame into one of the inbound event variants.

    Raises BadRequest for unknown events and for payloads with missing or mistyped fields.
    """
    if not isinstance(packet, dict) or not isinstance(packet.get("event"), str):
        raise BadRequest("Frame has no event name")
    name = packet["event"]
    if name not in INBOUND_EVENTS:
        raise BadRequest(f"Unknown event {name!r}")

    data = packet.get("data", {})
    if not isinstance(data, dict):
        raise BadRequest(f"Payload of {name!r} must be an object")

    variant, schema = INBOUND_EVENTS[name]
    try:
        fields = schema(data)
    except voluptuous.error.Invalid as e:
        raise BadRequest(f"Malformed {name!r} payload: {e}") from e
    return variant(**fields)


def packet(event: str, data) -> dict:
    return {"event": event, "data": data}


def player_list_update(players: Iterable[Player]) -> dict:
    return packet("playerListUpdate", [player.to_dict() for player in players])


def vehicle_list_update(vehicles: Iterable[Vehicle]) -> dict:
    return packet("vehicleListUpdate", [vehicle.to_dict() for vehicle in vehicles])


def player_moved(player_id: str, position: Vector3) -> dict:
    return packet("playerMoved", {"id": player_id, "position": position.to_dict()})


def chat_message(player_name: str, message: str, timestamp: datetime, message_type: str = "chat") -> dict:
    return packet("chatMessage", {
        "player": player_name,
        "message": message,
        "timestamp": timestamp.isoformat(),
        "type": message_type,
    })


def job_started(job: str, salary: int) -> dict:
    return packet("jobStarted", {"job": job, "salary": salary})


def error(exc: RelayError) -> dict:
    return packet("error", {"code": exc.code, "message": exc.message})
