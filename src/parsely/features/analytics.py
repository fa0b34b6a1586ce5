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
"""Custom analytics events (``POST /events/{name}``)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UseCachePolicy
from parsely.api.surface import class_surface, surface
from parsely.coding.any_codable import AnyCodable
from parsely.coding.coding import encode_date
from parsely.core.configuration import CachePolicy
from parsely.core.runtime import ParseClient, resolve

OptionsArg = Options | Iterable[Option] | None

APP_OPENED = "AppOpened"


class ParseAnalytics(BaseModel):
    """One event occurrence; *dimensions* segment it, *at* defaults to server time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, ignored_types=(surface,))

    name: str
    dimensions: dict[str, AnyCodable] | None = None
    at: datetime | None = Field(default=None)

    @classmethod
    def event(cls, name: str, dimensions: Mapping[str, Any] | None = None, at: datetime | None = None) -> ParseAnalytics:
        wrapped = {key: AnyCodable.wrap(value) for key, value in dimensions.items()} if dimensions else None
        return cls(name=name, dimensions=wrapped, at=at)

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {"name": self.name}
        if self.at is not None:
            body["at"] = encode_date(self.at)
        if self.dimensions is not None:
            body["dimensions"] = {key: value.to_wire() for key, value in self.dimensions.items()}
        return body

    def save_command(self) -> NonParseBodyCommand[None]:
        return NonParseBodyCommand(
            method=Method.POST,
            path=Endpoint.event(self.name),
            body=self.to_wire(),
            mapper=lambda data: None,
        )

    @surface
    async def track(self, options: OptionsArg = None, client: ParseClient | None = None) -> None:
        """Record this event.

        The call inserts its own cache policy ahead of *options*, so a cache
        policy supplied by the caller is not used here.
        """
        options = Options.of(options).with_defaults(UseCachePolicy(CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))
        await self.save_command().execute(resolve(client), options)

    @class_surface
    async def track_app_opened(
        cls,
        dimensions: Mapping[str, Any] | None = None,
        at: datetime | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> None:
        await cls.event(APP_OPENED, dimensions, at).track(options, client)
