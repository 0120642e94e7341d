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
import logging
import os

from config import Config, ConfigurationLoadError
from logger import setup_logging
from relay_manager import RelayManager
from server_data import ServerData
from websocket_server import WebsocketServer


class GtaRelay:

    def __init__(self, config):
        self._config = config
        self._data = ServerData(self._config)
        self._manager = RelayManager(self._config, self._data)
        self._websocket_server = WebsocketServer(self._config, self._data, self._manager)

    async def begin(self):
        logging.info(f"Starting {self._config['server']['name']}")
        async with self._websocket_server:
            logging.info(f"Relay listening on port {self._websocket_server.port}")
            logging.info(f"Server stats: http://localhost:{self._websocket_server.port}/api/stats")
            sweeper = asyncio.create_task(self._manager.run_sweeper())
            try:
                logging.info("Ctrl^C to quit")
                await self._data.shutdown_event.wait()
            except asyncio.CancelledError:
                logging.info("Cancelled ...")
            finally:
                logging.info("Stopping Server ...")
                self._data.shutdown_event.set()
                await sweeper


async def main():
    logging.info("Starting gta relay ...")

    config = Config(os.environ.get("GTA_RELAY_CONFIG", "./config.toml"))

    try:
        await config.initialize()
    except ConfigurationLoadError:
        logging.error("Could not load configuration. Exiting")
        return

    relay = GtaRelay(config.config)
    await relay.begin()


def run():
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Cancelled ...")


if __name__ == "__main__":
    run()
