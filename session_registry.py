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
import enum
import logging
import time
import uuid
from typing import Callable, Optional


class SessionState(enum.Enum):
    CONNECTED = "connected"
    IDENTIFIED = "identified"
    DISCONNECTED = "disconnected"


@dataclasses.dataclass
class Session:
    session_id: str
    transport: object  # anything with enqueue(packet) and close()
    state: SessionState
    connected_at: float
    last_activity: float

    @property
    def identified(self) -> bool:
        return self.state == SessionState.IDENTIFIED


class SessionRegistry:
    """
    Maps live connections to session ids. A reconnect is always a brand new session.

    Sessions move Connected -> Identified -> Disconnected, and Disconnected is terminal.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._sessions: dict[str, Session] = dict()

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    def on_connect(self, transport) -> Session:
        now = self._clock()
        session = Session(
            session_id=uuid.uuid4().hex,
            transport=transport,
            state=SessionState.CONNECTED,
            connected_at=now,
            last_activity=now,
        )
        self._sessions[session.session_id] = session
        logging.debug(f"Session {session.session_id} connected")
        return session

    def on_identify(self, session_id: str) -> Optional[Session]:
        """Called by the relay manager once the player record for this session has been stored."""
        session = self._sessions.get(session_id)
        if session is None:
            logging.warning(f"Tried to identify unknown session {session_id}")
            return None
        if session.state == SessionState.CONNECTED:
            session.state = SessionState.IDENTIFIED
            logging.debug(f"Session {session_id} identified")
        return session

    def on_disconnect(self, session_id: str) -> Optional[Session]:
        session = self._sessions.pop(session_id, None)
        if session is None:
            logging.debug(f"Session {session_id} already disconnected")
            return None
        session.state = SessionState.DISCONNECTED
        logging.debug(f"Session {session_id} disconnected")
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def touch(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_activity = self._clock()

    def identified_sessions(self) -> list[Session]:
        return [session for session in self._sessions.values() if session.identified]

    def expired_sessions(self, timeout: float) -> list[Session]:
        if timeout <= 0:
            return []
        cutoff = self._clock() - timeout
        return [session for session in self._sessions.values() if session.last_activity < cutoff]
