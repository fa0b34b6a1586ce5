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
"""Remote configuration (``/config``) with a locally persisted copy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UseCachePolicy, UsePrimaryKey
from parsely.api.responses import BooleanResponse, ConfigFetchResponse
from parsely.api.surface import class_surface
from parsely.core.configuration import CachePolicy
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError
from parsely.storage.parse_storage import StorageKeys

OptionsArg = Options | Iterable[Option] | None

logger = structlog.get_logger(__name__)


class ParseConfig:
    """Key/value parameters shared by every client of the application.

    Fetched values and successfully saved values are kept in storage and
    returned by :meth:`current` without a request.
    """

    @staticmethod
    def fetch_command() -> NonParseBodyCommand[dict[str, Any]]:
        return NonParseBodyCommand(
            method=Method.GET,
            path=Endpoint.config(),
            mapper=lambda data: ConfigFetchResponse.model_validate_json(data).params,
        )

    @staticmethod
    def update_command(params: Mapping[str, Any]) -> NonParseBodyCommand[bool]:
        # PUT until the server accepts PATCH here.
        return NonParseBodyCommand(
            method=Method.PUT,
            path=Endpoint.config(),
            body={"params": dict(params)},
            mapper=lambda data: BooleanResponse.model_validate_json(data).result,
        )

    @class_surface
    async def fetch(cls, options: OptionsArg = None, client: ParseClient | None = None) -> dict[str, Any]:
        client = resolve(client)
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        params = await cls.fetch_command().execute(client, options)
        await client.storage.set(StorageKeys.CURRENT_CONFIG, params)
        return params

    @class_surface
    async def save(
        cls,
        params: Mapping[str, Any],
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> bool:
        """Update parameters on the server; requires the primary key, which is added for you."""
        client = resolve(client)
        options = Options.of(options).with_defaults(
            UsePrimaryKey(), UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA)
        )
        updated = await cls.update_command(params).execute(client, options)
        if updated:
            stored = await client.storage.get_quietly(StorageKeys.CURRENT_CONFIG)
            merged = {**(stored if isinstance(stored, dict) else {}), **params}
            await client.storage.set(StorageKeys.CURRENT_CONFIG, merged)
        else:
            logger.warning("config_not_updated", keys=sorted(params))
        return updated

    @classmethod
    async def current(cls, client: ParseClient | None = None) -> dict[str, Any]:
        """The last fetched or saved parameters."""
        stored = await resolve(client).storage.get_quietly(StorageKeys.CURRENT_CONFIG)
        if not isinstance(stored, dict):
            raise ParseError.other("There is no current Config")
        return stored

    @classmethod
    async def delete_current(cls, client: ParseClient | None = None) -> None:
        await resolve(client).storage.delete(StorageKeys.CURRENT_CONFIG)
