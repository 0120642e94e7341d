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


class RelayError(Exception):
    code = "relay_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class BadRequest(RelayError):
    code = "bad_request"


class NotIdentified(RelayError):
    code = "not_identified"


class NotFound(RelayError):
    code = "not_found"


class TransportFailure(RelayError):
    code = "transport_failure"
