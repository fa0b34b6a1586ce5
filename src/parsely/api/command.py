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
"""Commands: the only unit dispatched to the transport.

A command is a plain value (method, endpoint, params, body, and a mapper
from raw response bytes to a typed result). Records, queries and the
auxiliary endpoints compile themselves into commands; executing one
resolves the client, builds headers, hands the request to the transport,
and decodes the reply:

1. a ``{"code", "error"}`` envelope becomes that :class:`ParseError`;
2. a final non-2xx reply without an envelope becomes ``OTHER_CAUSE``;
3. otherwise the mapper runs, and anything it raises that is not already a
   :class:`ParseError` becomes ``OTHER_CAUSE``;
4. transport failures become ``OTHER_CAUSE`` carrying the original error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from parsely.api.endpoint import Endpoint, Method
from parsely.api.options import Options, build_headers
from parsely.client.ports.outbound import (
    HttpRequest,
    HttpResponse,
    ProgressCallback,
    TransferCancelledError,
    TransferTask,
    TransportError,
)
from parsely.coding.coding import SERVER_KEYS, dumps, encode_fields, encode_value, loads
from parsely.core.runtime import ParseClient, resolve
from parsely.kernel.exceptions import ParseError, ParseErrorCode

T = TypeVar("T")
U = TypeVar("U")
M = TypeVar("M", bound=BaseModel)

Mapper = Callable[[bytes], U]

logger = structlog.get_logger(__name__)


def model_mapper(model: type[M]) -> Mapper[M]:
    """Mapper that validates the whole response body as *model*."""
    return model.model_validate_json


@dataclass(frozen=True)
class _BaseCommand(ABC, Generic[U]):
    method: Method
    path: Endpoint
    mapper: Mapper[U]
    params: Mapping[str, str | None] | None = None
    body: Any = None
    url: str | None = None
    upload_data: bytes | None = None
    upload_file: Path | None = None
    destination: Path | None = None

    @abstractmethod
    def encode_body(self) -> bytes | None: ...

    @property
    def is_upload(self) -> bool:
        return self.upload_data is not None or self.upload_file is not None

    @property
    def is_download(self) -> bool:
        return self.destination is not None

    async def prepare(self, client: ParseClient, options: Options) -> HttpRequest:
        configuration = client.configuration
        url = self.url or f"{options.server_url(configuration.server_url)}{self.path}"
        headers = await build_headers(client, options, self.method)
        params = {key: value for key, value in (self.params or {}).items() if value is not None}
        return HttpRequest(
            method=self.method.value,
            url=url,
            headers=headers,
            params=params or None,
            content=None if self.is_upload else self.encode_body(),
            cache_policy=options.cache_policy(configuration.request_cache_policy).value,
        )

    async def execute(
        self,
        client: ParseClient | None = None,
        options: Options | None = None,
        on_intermediate: Callable[[U], None] | None = None,
        *,
        progress: ProgressCallback | None = None,
        task: TransferTask | None = None,
    ) -> U:
        """Dispatch once and decode the reply; failures are raised as :class:`ParseError`."""
        client = resolve(client)
        options = Options.of(options)
        try:
            request = await self.prepare(client, options)
        except ParseError:
            raise
        except (TypeError, ValueError) as exc:
            raise ParseError.other(f"Unable to encode the request: {exc}", exc) from exc

        logger.debug("command_dispatched", method=request.method, path=str(self.path))
        try:
            if self.is_upload:
                response = await client.transport.upload(
                    request,
                    data=self.upload_data,
                    file=self.upload_file,
                    progress=progress,
                    task=task,
                )
            elif self.is_download:
                response = await client.transport.download(
                    request,
                    destination=self.destination,  # type: ignore[arg-type]
                    progress=progress,
                    task=task,
                )
            else:
                hook = self._intermediate_hook(on_intermediate) if on_intermediate is not None else None
                response = await client.transport.send(request, on_retry=hook)
        except TransferCancelledError as exc:
            raise ParseError(ParseErrorCode.OTHER_CAUSE, "The transfer was cancelled", exc) from exc
        except (TransportError, OSError) as exc:
            raise ParseError(ParseErrorCode.OTHER_CAUSE, "Unable to connect with parse-server", exc) from exc
        return self.decode(response)

    def _intermediate_hook(self, on_intermediate: Callable[[U], None]) -> Callable[[HttpResponse], None]:
        def hook(response: HttpResponse) -> None:
            try:
                value = self.decode(response, require_success=False)
            except ParseError as exc:
                logger.debug("intermediate_response_skipped", status=response.status_code, error=exc.message)
                return
            on_intermediate(value)

        return hook

    def decode(self, response: HttpResponse, require_success: bool = True) -> U:
        """Map a reply to a result. Error envelopes and, when *require_success*, non-2xx replies fail."""
        payload = dumps(str(response.location)).encode() if response.location is not None else response.content
        if payload:
            try:
                envelope = loads(payload)
            except ValueError:
                envelope = None
            error = ParseError.from_envelope(envelope)
            if error is not None:
                raise error
        if require_success and not response.is_success:
            raise ParseError(
                ParseErrorCode.OTHER_CAUSE,
                f"parse-server replied with HTTP {response.status_code}",
                context={"status": response.status_code},
            )
        try:
            return self.mapper(payload)
        except ParseError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ParseError(
                ParseErrorCode.OTHER_CAUSE,
                f"Error decoding parse-server response: {exc}",
                exc,
                context={"status": response.status_code},
            ) from exc


@dataclass(frozen=True)
class Command(_BaseCommand[U]):
    """A command whose body is a record's own fields.

    ``skip_keys`` names wire keys left out of the body; server-managed keys
    are skipped unless the caller supplies the object id itself.
    """

    skip_keys: frozenset[str] = field(default=SERVER_KEYS)

    def encode_body(self) -> bytes | None:
        if self.body is None or self.method in (Method.GET, Method.DELETE):
            return None
        return dumps(encode_fields(self.body, skip=self.skip_keys)).encode("utf-8")


@dataclass(frozen=True)
class NonParseBodyCommand(_BaseCommand[U]):
    """A command whose body is any encodable value (queries, config, analytics, ...)."""

    def encode_body(self) -> bytes | None:
        if self.body is None:
            return None
        return dumps(encode_value(self.body)).encode("utf-8")
