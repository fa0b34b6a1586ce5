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
"""Server health and information.

Health checks tolerate a server that is still starting: while it answers
``initialized`` or ``starting`` the transport keeps retrying, and each such
answer can be observed as an intermediate result::

    async for status in ParseServer.health.publisher():
        print(status)  # ServerStatus.STARTING ... ServerStatus.OK
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

import structlog
from pydantic import Field

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UseCachePolicy, UsePrimaryKey
from parsely.api.responses import Envelope
from parsely.api.surface import class_surface
from parsely.core.configuration import CachePolicy
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError
from parsely.version import ParseVersion

OptionsArg = Options | Iterable[Option] | None

logger = structlog.get_logger(__name__)


class ServerStatus(str, Enum):
    OK = "ok"
    INITIALIZED = "initialized"
    STARTING = "starting"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ServerStatus.OK, ServerStatus.ERROR)


class HealthResponse(Envelope):
    status: ServerStatus


class ServerInformation(Envelope):
    version_string: str | None = Field(default=None, alias="parseServerVersion")
    features: dict[str, Any] | None = None

    @property
    def version(self) -> ParseVersion | None:
        if self.version_string is None:
            return None
        try:
            return ParseVersion.parse(self.version_string)
        except ParseError:
            return None

    def get_features(self) -> dict[str, Any]:
        if self.features is None:
            raise ParseError.other("There are no features available from the server")
        return self.features


class ParseServer:
    """Health checks and general information about the configured server."""

    @staticmethod
    def health_command() -> NonParseBodyCommand[ServerStatus]:
        return NonParseBodyCommand(
            method=Method.POST,
            path=Endpoint.health(),
            mapper=lambda data: HealthResponse.model_validate_json(data).status,
        )

    @staticmethod
    def info_command() -> NonParseBodyCommand[ServerInformation]:
        return NonParseBodyCommand(
            method=Method.GET,
            path=Endpoint.server_info(),
            mapper=ServerInformation.model_validate_json,
        )

    @class_surface
    async def health(
        cls,
        options: OptionsArg = None,
        client: ParseClient | None = None,
        allow_intermediate_responses: bool = True,
        on_intermediate: Callable[[ServerStatus], None] | None = None,
    ) -> ServerStatus:
        """Check the server health.

        With *allow_intermediate_responses*, non-terminal statuses seen while
        the server starts are passed to *on_intermediate*. Without it only a
        terminal status is returned; a server that never leaves a starting
        state fails with ``OTHER_CAUSE``.
        """
        client = resolve(client)
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        hook = on_intermediate if allow_intermediate_responses else None
        status = await cls.health_command().execute(client, options, hook)
        if not allow_intermediate_responses and not status.is_terminal:
            raise ParseError.other(f"The server is not ready: {status.value}")
        logger.debug("server_health", status=status.value)
        return status

    @class_surface
    async def information(cls, options: OptionsArg = None, client: ParseClient | None = None) -> ServerInformation:
        """Server version and features; requires the primary key, which is added for you."""
        client = resolve(client)
        options = Options.of(options).with_defaults(
            UsePrimaryKey(), UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA)
        )
        return await cls.info_command().execute(client, options)
