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

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import events
from entity_store import EntityStore, utc_now
from errors import BadRequest, NotFound, NotIdentified, RelayError, TransportFailure
from events import ChatMessage, PlayerMove, PlayerSpawn, StartJob, VehicleDespawn, VehicleSpawn
from server_data import ServerData
from session_registry import Session, SessionRegistry

"""
Every inbound event goes through here, and so does every mutation of the entity store.
Handlers never await, so one event's store writes and fan-out enqueues finish before the next event runs.
"""


class RelayManager:

    def __init__(self, config, data: ServerData, clock: Callable[[], datetime] = utc_now):
        self._config = config
        self._data = data
        self._clock = clock
        self._session_timeout = float(config["relay"]["session_timeout"])
        self._sweep_interval = float(config["relay"]["sweep_interval"])
        self._vehicle_ttl = float(config["vehicles"]["ttl"])
        self._handlers = {
            PlayerSpawn: self._on_player_spawn,
            PlayerMove: self._on_player_move,
            ChatMessage: self._on_chat_message,
            VehicleSpawn: self._on_vehicle_spawn,
            VehicleDespawn: self._on_vehicle_despawn,
            StartJob: self._on_start_job,
        }

    @property
    def store(self) -> EntityStore:
        return self._data.store

    @property
    def sessions(self) -> SessionRegistry:
        return self._data.sessions

    def session_connected(self, transport) -> Session:
        session = self.sessions.on_connect(transport)
        logging.info(f"Session {session.session_id} connected ({len(self.sessions)} open)")
        return session

    def session_disconnected(self, session_id: str) -> None:
        session = self.sessions.on_disconnect(session_id)
        if session is None:
            return

        player = self.store.remove_player(session_id)
        if player is None:
            logging.info(f"Session {session_id} disconnected before spawning")
            return

        released = self.store.release_vehicles(session_id, at=self._clock())
        logging.info(f"Player {player.name} disconnected, {len(released)} vehicle(s) left ownerless")
        self._broadcast(events.player_list_update(self.store.snapshot_players()))
        if released:
            self._broadcast(events.vehicle_list_update(self.store.snapshot_vehicles()))

    def handle_packet(self, session_id: str, packet: dict) -> None:
        session = self.sessions.get(session_id)
        if session is None:
            logging.warning(f"Dropped packet for unknown session {session_id}")
            return
        self.sessions.touch(session_id)

        try:
            event = events.parse_event(packet)
            self._handlers[type(event)](session, event)
        except RelayError as e:
            name = packet.get("event") if isinstance(packet, dict) else None
            logging.warning(f"Rejected {name!r} from session {session_id}: [{e.code}] {e.message}")
            self._send(session, events.error(e))

    @staticmethod
    def _require_identified(session: Session):
        if not session.identified:
            raise NotIdentified("Spawn a player before sending events")

    def _on_player_spawn(self, session: Session, event: PlayerSpawn):
        if not session.identified and self.store.player_count >= self._data.max_players:
            raise BadRequest(f"Server is full ({self._data.max_players} players)")

        fields = {field.name: getattr(event, field.name) for field in dataclasses.fields(event)}
        fields["last_seen"] = self._clock()
        player = self.store.upsert_player(session.session_id, fields)
        self.sessions.on_identify(session.session_id)

        logging.info(f"Player {player.name} spawned at {player.position}")
        self._broadcast(events.player_list_update(self.store.snapshot_players()))

    def _on_player_move(self, session: Session, event: PlayerMove):
        self._require_identified(session)
        self.store.upsert_player(session.session_id, {
            "position": event.position,
            "last_seen": self._clock(),
        })
        self._broadcast(events.player_moved(session.session_id, event.position), exclude=session.session_id)

    def _on_chat_message(self, session: Session, event: ChatMessage):
        self._require_identified(session)
        player = self.store.get_player(session.session_id)
        if player is None:
            raise NotFound(f"No player for session {session.session_id}")
        self.store.upsert_player(session.session_id, {"last_seen": self._clock()})

        logging.info(f"[{event.type.upper()}] {player.name}: {event.message}")
        self._broadcast(events.chat_message(player.name, event.message, self._clock(), event.type))

    def _on_vehicle_spawn(self, session: Session, event: VehicleSpawn):
        self._require_identified(session)
        vehicle = self.store.upsert_vehicle(event.id, {
            "model": event.model,
            "position": event.position,
            "owner": session.session_id,
            "updated_at": self._clock(),
        })
        self.store.upsert_player(session.session_id, {"last_seen": self._clock()})

        logging.info(f"Vehicle {vehicle.id} ({vehicle.model}) spawned by {session.session_id}")
        self._broadcast(events.vehicle_list_update(self.store.snapshot_vehicles()))

    def _on_vehicle_despawn(self, session: Session, event: VehicleDespawn):
        self._require_identified(session)
        vehicle = self.store.get_vehicle(event.id)
        if vehicle is None:
            raise NotFound(f"Vehicle {event.id} does not exist")
        if vehicle.owner not in (None, session.session_id):
            raise BadRequest(f"Vehicle {event.id} is owned by another player")

        self.store.remove_vehicle(event.id)
        self.store.upsert_player(session.session_id, {"last_seen": self._clock()})
        logging.info(f"Vehicle {event.id} despawned by {session.session_id}")
        self._broadcast(events.vehicle_list_update(self.store.snapshot_vehicles()))

    def _on_start_job(self, session: Session, event: StartJob):
        self._require_identified(session)
        player = self.store.adjust_money(session.session_id, event.salary, job=event.job, last_seen=self._clock())

        logging.info(f"Player {player.name} started job: {event.job}")
        self._broadcast(events.player_list_update(self.store.snapshot_players()))
        self._send(session, events.job_started(event.job, event.salary))

    def _send(self, session: Session, packet: dict) -> bool:
        try:
            session.transport.enqueue(packet)
            return True
        except TransportFailure as e:
            self._drop(session, e)
            return False

    def _broadcast(self, packet: dict, exclude: Optional[str] = None) -> None:
        failed = []
        for session in self.sessions.identified_sessions():
            if session.session_id == exclude:
                continue
            try:
                session.transport.enqueue(packet)
            except TransportFailure as e:
                failed.append((session, e))

        for session, e in failed:
            self._drop(session, e)

    @staticmethod
    def _drop(session: Session, e: TransportFailure):
        logging.warning(f"Dropping session {session.session_id}: {e.message}")
        session.transport.close()

    def sweep(self) -> None:
        for session in self.sessions.expired_sessions(self._session_timeout):
            logging.info(f"Session {session.session_id} timed out after {self._session_timeout:g}s")
            session.transport.close()
            self.session_disconnected(session.session_id)

        if self._vehicle_ttl > 0:
            cutoff = self._clock() - timedelta(seconds=self._vehicle_ttl)
            expired = self.store.expire_vehicles(cutoff)
            if expired:
                logging.info(f"Expired {len(expired)} ownerless vehicle(s)")
                self._broadcast(events.vehicle_list_update(self.store.snapshot_vehicles()))

    async def run_sweeper(self):
        while not self._data.shutdown_event.is_set():
            try:
                await asyncio.wait_for(self._data.shutdown_event.wait(), timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                self.sweep()
