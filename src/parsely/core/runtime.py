# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Process-wide client context: configuration, transport, and storage."""

from __future__ import annotations

from pathlib import Path

import structlog

from parsely.client.adapters.httpx_adapter import HttpxTransport
from parsely.client.ports.outbound import TransportPort
from parsely.core.config import Config
from parsely.core.configuration import ParseConfiguration
from parsely.kernel.exceptions import ParseError, ParseErrorCode
from parsely.storage.memory import InMemoryPrimitiveStore
from parsely.storage.parse_storage import ParseStorage
from parsely.storage.port import PrimitiveStore

logger = structlog.get_logger(__name__)


class ParseClient:
    """Everything a command needs at dispatch time."""

    def __init__(
        self,
        configuration: ParseConfiguration,
        transport: TransportPort,
        store: PrimitiveStore,
    ) -> None:
        self._configuration = configuration
        self._transport = transport
        self._storage = ParseStorage(store)

    @property
    def configuration(self) -> ParseConfiguration:
        return self._configuration

    @property
    def transport(self) -> TransportPort:
        return self._transport

    @property
    def storage(self) -> ParseStorage:
        return self._storage

    async def close(self) -> None:
        await self._transport.close()


_current: ParseClient | None = None


def initialize(
    configuration: ParseConfiguration | Config | None = None,
    *,
    transport: TransportPort | None = None,
    primitive_store: PrimitiveStore | None = None,
) -> ParseClient:
    """Install the process-wide client.

    Without arguments, settings are loaded from ``parsely.yaml``/``parsely.toml``
    in the working directory plus ``PARSELY_*`` environment variables.
    """
    global _current
    if configuration is None:
        configuration = Config.from_sources(Path.cwd())
    if isinstance(configuration, Config):
        configuration = configuration.bind(ParseConfiguration)

    client = ParseClient(
        configuration,
        transport or HttpxTransport.from_configuration(configuration),
        primitive_store or InMemoryPrimitiveStore(),
    )
    _current = client
    logger.info(
        "parse_initialized",
        server_url=configuration.server_url,
        application_id=configuration.application_id,
    )
    return client


def current() -> ParseClient:
    """The installed client; raises if :func:`initialize` has not run."""
    if _current is None:
        raise ParseError(
            ParseErrorCode.OTHER_CAUSE,
            "Parsely has not been initialized. Call parsely.initialize() before use.",
        )
    return _current


def resolve(client: ParseClient | None) -> ParseClient:
    return client if client is not None else current()


def reset() -> None:
    """Forget the installed client without closing it."""
    global _current
    _current = None


async def shutdown() -> None:
    global _current
    if _current is not None:
        await _current.close()
    _current = None
