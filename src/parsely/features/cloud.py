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
"""Cloud Code functions and background jobs.

Functions run synchronously and return their ``result``; jobs are only
started, and answer with a job status id::

    total = await ParseCloud.run_function("averageStars", {"movie": "The Matrix"})
    status_id = await ParseCloud.start_job("rebuildIndexes")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from parsely.api.command import NonParseBodyCommand
from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Option, Options, UsePrimaryKey
from parsely.api.responses import AnyResultResponse
from parsely.api.surface import class_surface
from parsely.core.runtime import ParseClient, resolve

OptionsArg = Options | Iterable[Option] | None

logger = structlog.get_logger(__name__)


def _result(data: bytes) -> Any:
    return AnyResultResponse.model_validate_json(data).result


class ParseCloud:
    @staticmethod
    def function_command(name: str, params: Mapping[str, Any] | None = None) -> NonParseBodyCommand[Any]:
        return NonParseBodyCommand(
            method=Method.POST,
            path=Endpoint.function(name),
            body=dict(params or {}),
            mapper=_result,
        )

    @staticmethod
    def job_command(name: str, params: Mapping[str, Any] | None = None) -> NonParseBodyCommand[Any]:
        return NonParseBodyCommand(
            method=Method.POST,
            path=Endpoint.job(name),
            body=dict(params or {}),
            mapper=_result,
        )

    @class_surface
    async def run_function(
        cls,
        name: str,
        params: Mapping[str, Any] | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> Any:
        logger.debug("cloud_function_called", function=name)
        return await cls.function_command(name, params).execute(resolve(client), Options.of(options))

    @class_surface
    async def start_job(
        cls,
        name: str,
        params: Mapping[str, Any] | None = None,
        options: OptionsArg = None,
        client: ParseClient | None = None,
    ) -> Any:
        """Start a background job; requires the primary key, which is added for you."""
        options = Options.of(options).with_defaults(UsePrimaryKey())
        logger.debug("cloud_job_started", job=name)
        return await cls.job_command(name, params).execute(resolve(client), options)
