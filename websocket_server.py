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
import json
import logging
from typing import Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

import read_api
from errors import TransportFailure
from relay_manager import RelayManager
from server_data import ServerData


class WebsocketTransport:
    """
    Outbound side of one client connection.

    enqueue() never waits: frames go into a bounded queue drained by a writer task,
    and a full queue means the client is too slow to keep.
    """

    def __init__(self, websocket: ServerConnection, queue_size: int):
        self._websocket = websocket
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self._closing: Optional[asyncio.Task] = None
        self._writer = asyncio.create_task(self._write_loop())

    def enqueue(self, packet: dict) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(json.dumps(packet))
        except asyncio.QueueFull as e:
            raise TransportFailure(f"Outbound queue full ({self._queue.maxsize} frames pending)") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._writer.cancel()
        self._closing = asyncio.create_task(self._websocket.close())

    async def _write_loop(self):
        try:
            while True:
                message = await self._queue.get()
                await self._websocket.send(message)
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Websocket closed with frames still queued")
            self._closed = True
        except Exception as e:
            logging.exception(e)
            self._closed = True


class WebsocketServer:

    def __init__(self, config, data: ServerData, manager: RelayManager):
        self._config = config
        self._data = data
        self._manager = manager
        self._queue_size = int(self._config["relay"]["outbound_queue_size"])
        self._websocket_server = serve(
            self.handler,
            self._config["server"]["host"],
            int(self._config["server"]["port"]),
            process_request=self._process_request,
        )
        self._server = None

    @property
    def port(self) -> int:
        return self._server.sockets[0].getsockname()[1]

    async def handler(self, websocket: ServerConnection):
        transport = WebsocketTransport(websocket, self._queue_size)
        session = self._manager.session_connected(transport)
        shutdown_wait_task = asyncio.create_task(self._data.shutdown_event.wait())
        try:
            while True:
                recv_task = asyncio.create_task(websocket.recv())
                await asyncio.wait([recv_task, shutdown_wait_task], return_when=asyncio.FIRST_COMPLETED)

                # shutdown case
                if self._data.shutdown_event.is_set():
                    recv_task.cancel()
                    await websocket.close()
                    break

                message = recv_task.result()
                if isinstance(message, str):
                    self._parse_message(session.session_id, message)
                else:
                    logging.warning(f"Session {session.session_id} sent a binary frame, ignoring")
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Websocket connection closed")
        finally:
            shutdown_wait_task.cancel()
            transport.close()
            self._manager.session_disconnected(session.session_id)

    def _parse_message(self, session_id: str, message: str):
        try:
            packet = json.loads(message)
            logging.debug(f"Received message: {packet}")
            if not isinstance(packet, dict) or "event" not in packet:
                logging.warning(f"Malformed packet - no event")
                return
            self._manager.handle_packet(session_id, packet)

        except json.JSONDecodeError as e:
            logging.warning(f"WebSocket sent non-JSON data; details:")
            logging.exception(e)

    def _process_request(self, connection: ServerConnection, request: Request) -> Optional[Response]:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None  # continue with the handshake

        status, body = read_api.route(self._data, request.path)
        logging.info(f"GET {request.path} {status.value}")
        response = connection.respond(status, json.dumps(body))
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        return response

    async def __aenter__(self):
        if self._websocket_server is not None:
            logging.debug(f"Starting websocket server")
            self._server = await self._websocket_server.__aenter__()
            return self._server

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._websocket_server is not None:
            logging.debug(f"Stopping websocket server")
            self._data.shutdown_event.set()
            return await self._websocket_server.__aexit__(exc_type, exc_val, exc_tb)
