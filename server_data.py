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
import time

from entity_store import EntityStore
from session_registry import SessionRegistry

SERVER_VERSION = "1.0.0"


class ServerData:

    def __init__(self, config):
        self.store = EntityStore(
            max_vehicles=int(config["vehicles"]["max_vehicles"]),
            max_money=int(config["economy"]["max_money"]),
        )
        self.sessions = SessionRegistry()
        self.max_players: int = int(config["server"]["max_players"])
        self.started_at = time.monotonic()

        self.shutdown_event = asyncio.Event()

    @property
    def uptime(self) -> int:
        return int(time.monotonic() - self.started_at)
