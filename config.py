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

import logging
from pathlib import Path

import aiofiles
import tomlkit
import tomlkit.exceptions
import voluptuous.error
from voluptuous import Schema, Optional, Any, All, Range, Length

config_schema = Schema({
    Optional('server', default={}): {
        Optional('name', default="GTA RP Server"): All(str, Length(min=1)),
        Optional('host', default=""): str,
        Optional('port', default=3000): All(int, Range(min=0, max=65535)),
        Optional('max_players', default=50): All(int, Range(min=1)),
    },
    Optional('relay', default={}): {
        # seconds without any frame before a session is dropped, 0 disables
        Optional('session_timeout', default=30): All(Any(int, float), Range(min=0)),
        Optional('sweep_interval', default=1): All(Any(int, float), Range(min=0.05)),
        Optional('outbound_queue_size', default=256): All(int, Range(min=1)),
    },
    Optional('vehicles', default={}): {
        Optional('max_vehicles', default=100): All(int, Range(min=1)),
        # seconds an ownerless vehicle survives, 0 disables
        Optional('ttl', default=600): All(Any(int, float), Range(min=0)),
    },
    Optional('economy', default={}): {
        Optional('max_money', default=999_999_999): All(int, Range(min=0)),
    },
})


def default_config() -> dict:
    return config_schema({})


class ConfigurationLoadError(Exception): pass


class Config:
    config: dict

    def __init__(self, config_location: Path):
        self.config_location = config_location
        self.config_schema = config_schema

    async def initialize(self):
        try:
            async with aiofiles.open(self.config_location, 'r') as config_file:
                file_data = await config_file.read()
                document = tomlkit.parse(file_data)
                logging.debug("Loaded Configuration without toml format error")
                logging.debug("Validating against Schema.")
                self.config = self.config_schema(document.unwrap())
                logging.debug("Validated against Schema.")
        except FileNotFoundError as e:
            logging.exception(e)
            logging.warning(
                f"Could not find {self.config_location}. Copy from .example/config.toml to {self.config_location}")
            raise ConfigurationLoadError() from e
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.config_location}")
            raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is invalid")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e

        logging.info(f"Configuration loaded.")
