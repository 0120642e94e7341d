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
import random
import sys

from rich import print
from websockets.asyncio.client import connect

"""
Manual smoke test against a running relay.

    python development/quick_test.py [host] [port] [players]
"""

HOST = sys.argv[1] if len(sys.argv) > 1 else "localhost"
PORT = int(sys.argv[2]) if len(sys.argv) > 2 else 3000
PLAYER_COUNT = int(sys.argv[3]) if len(sys.argv) > 3 else 1

SPAWN_POSITIONS = [
    {"x": -1037.74, "y": -2738.04, "z": 20.17},
    {"x": -1040.12, "y": -2735.89, "z": 20.17},
    {"x": -1035.45, "y": -2740.23, "z": 20.17},
]
PLAYER_NAMES = ["John_Doe", "Jane_Smith", "Bob_Johnson", "Alice_Brown", "Charlie_Wilson"]
VEHICLE_MODELS = ["Adder", "Police Cruiser", "Tow Truck", "Taxi", "Delivery Van"]
JOBS = [("taxi", 150), ("police", 200), ("mechanic", 175), ("delivery", 125)]


async def http_get(path: str):
    reader, writer = await asyncio.open_connection(HOST, PORT)
    writer.write(f"GET {path} HTTP/1.1\r\nHost: {HOST}\r\nConnection: close\r\n\r\n".encode())
    await writer.drain()
    raw = await reader.read()
    writer.close()
    head, _, body = raw.partition(b"\r\n\r\n")
    return head.split(b"\r\n", 1)[0].decode(), json.loads(body)


async def listen(name: str, websocket):
    async for message in websocket:
        packet = json.loads(message)
        data = packet.get("data")
        if isinstance(data, list):
            print(f"[cyan]{name}[/cyan] <- {packet['event']}: {len(data)} entries")
        else:
            print(f"[cyan]{name}[/cyan] <- {packet['event']}: {data}")


async def play(index: int):
    name = PLAYER_NAMES[index % len(PLAYER_NAMES)]
    async with connect(f"ws://{HOST}:{PORT}") as websocket:
        listener = asyncio.create_task(listen(name, websocket))

        async def emit(event, data):
            await websocket.send(json.dumps({"event": event, "data": data}))

        await emit("playerSpawn", {
            "name": name,
            "position": SPAWN_POSITIONS[index % len(SPAWN_POSITIONS)],
            "health": 100,
            "armor": 50,
            "money": 1000,
            "level": 1,
            "job": "Unemployed",
        })
        await emit("chatMessage", {"message": f"Hello from {name}!"})
        vehicle_id = f"test_vehicle_{index:03}"
        await emit("vehicleSpawn", {
            "id": vehicle_id,
            "model": random.choice(VEHICLE_MODELS),
            "position": SPAWN_POSITIONS[index % len(SPAWN_POSITIONS)],
        })
        job, salary = random.choice(JOBS)
        await emit("startJob", {"job": job, "salary": salary})
        for _ in range(3):
            await asyncio.sleep(1)
            await emit("playerMove", {"position": {
                "x": -1037.74 + random.uniform(-10, 10),
                "y": -2738.04 + random.uniform(-10, 10),
                "z": 20.17,
            }})
        await emit("vehicleDespawn", {"id": vehicle_id})
        await asyncio.sleep(1)
        listener.cancel()


async def main():
    print("[bold]Quick Test - GTA Relay[/bold]")
    status, health = await http_get("/health")
    print(f"Health: {status} {health}")

    await asyncio.gather(*(play(index) for index in range(PLAYER_COUNT)))

    for path in ("/api/players", "/api/vehicles", "/api/stats"):
        status, body = await http_get(path)
        print(f"{path}: {status} {body}")


if __name__ == "__main__":
    asyncio.run(main())
